from __future__ import annotations

from typing import Any, Dict, List, Optional

LEXICAL_VERSION = 1
MOBILEDOC_VERSION = "0.3.1"


# --- Builders for the Lexical nodes Ghost stores in posts.lexical ---

def root(children: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    return {
        "root": {
            "children": children or [],
            "direction": "ltr",
            "format": "",
            "indent": 0,
            "type": "root",
            "version": LEXICAL_VERSION,
        }
    }


def paragraph(text_nodes: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    return {
        "children": text_nodes or [],
        "direction": "ltr",
        "format": "",
        "indent": 0,
        "type": "paragraph",
        "version": LEXICAL_VERSION,
    }


def text_node(text: str) -> Dict[str, Any]:
    # Ghost's editor writes plain runs as "extended-text" with every format bit cleared.
    return {
        "detail": 0,
        "format": 0,
        "mode": "normal",
        "style": "",
        "text": text or "",
        "type": "extended-text",
        "version": LEXICAL_VERSION,
    }


# --- Legacy Mobiledoc envelope ---

def mobiledoc_envelope(raw_html: str) -> str:
    """
    Single-section Mobiledoc document with ``raw_html`` as the text of its
    only markup run.

    The HTML is interpolated as-is, without JSON escaping, so the result is
    only valid JSON when the HTML contains no quotes, backslashes or control
    characters.  Revision readers downstream rely on this exact shape.
    """
    return (
        '{"version":"' + MOBILEDOC_VERSION + '","atoms":[],"cards":[],"markups":[],'
        '"sections":[[1,"p",[[0,[],0,"' + (raw_html or "") + '"]]]]}'
    )
