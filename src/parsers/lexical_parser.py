"""
HTML to Ghost document conversion.

Two representations are produced from a post's HTML body:

* :func:`html_to_lexical` builds the Lexical tree stored in
  ``posts.lexical``.  Only ``<p>`` elements are converted; every other
  element is ignored, and so is text outside a paragraph.
* :func:`html_to_mobiledoc` builds the crude Mobiledoc string archived in the
  revision tables.  It does not parse the HTML at all.

Neither function raises on malformed markup.  The HTML is parsed the way a
browser would parse it, so an unclosed ``<p>`` ends where the next one starts.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List

from bs4 import BeautifulSoup

from .lexical_schema import mobiledoc_envelope, paragraph, root, text_node

__all__ = [
    "html_to_lexical",
    "html_to_lexical_json",
    "html_to_mobiledoc",
]


def html_to_lexical(html: str) -> Dict[str, Any]:
    """
    Convert the ``<p>`` elements of ``html`` into a Lexical root node.

    Each paragraph becomes a paragraph node holding one text leaf per text
    segment found inside it (nested inline markup such as ``<strong>`` splits
    the paragraph into several segments), in document order.  A paragraph
    with no text still yields a paragraph node with no children.
    """
    soup = BeautifulSoup(html or "", "html5lib")

    blocks: List[Dict[str, Any]] = []
    for p in soup.find_all("p"):
        blocks.append(paragraph([text_node(str(s)) for s in p.strings]))
    return root(blocks)


def html_to_lexical_json(html: str) -> str:
    """Serialized form of :func:`html_to_lexical`, as written to the database."""
    return json.dumps(html_to_lexical(html), ensure_ascii=False)


def html_to_mobiledoc(html: str) -> str:
    return mobiledoc_envelope(html)
