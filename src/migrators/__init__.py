"""
Ghost database writers.

This subpackage holds the statement gateway over the Ghost database
(:mod:`src.migrators.ghost_store`) and the post ingestion pipeline built on
top of it (:mod:`src.migrators.ghost_migrator`).  Statements run one at a
time on an injected connection; partial failures are logged and reported
rather than rolled back.
"""
