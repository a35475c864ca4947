"""
Top-level package for the WordPress → Ghost import utility.

This package bundles the components required to read WordPress exports,
convert post HTML to Ghost's Lexical and Mobiledoc formats, and write posts
with their authors, tags, revisions and metadata into a Ghost database.
Modules are split into subpackages:

* :mod:`src.extractors` – helpers to parse CSV or XML exports
* :mod:`src.parsers` – HTML to Lexical / Mobiledoc converters
* :mod:`src.migrators` – the Ghost store gateway and the post writer
* :mod:`src.utils` – ids, resolvers, error logging and pre-flight checks

Each layer has no direct knowledge of configuration or execution strategy;
orchestration is handled in the migration_tool.
"""
