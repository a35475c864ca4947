"""
Extractors for WordPress export files.

This subpackage provides functions to parse CSV and XML exports from
WordPress into the flat post dictionaries accepted by
:class:`models.ghost_post.PostPayload`, so each exported post can be fed
straight into the Ghost import pipeline.
"""
