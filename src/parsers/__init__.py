"""
Parsers and converters used by the import pipeline.

This subpackage exposes the HTML to Lexical conversion and the legacy
Mobiledoc envelope from :mod:`src.parsers.lexical_parser`.
"""

from .lexical_parser import html_to_lexical, html_to_lexical_json, html_to_mobiledoc

__all__ = ["html_to_lexical", "html_to_lexical_json", "html_to_mobiledoc"]
