"""
Text cleaning applied to user-supplied fields before they are stored.
"""

from __future__ import annotations

import re
from typing import Any, Optional

NAME_MAX_LENGTH = 100
BIO_MAX_LENGTH = 500
POST_MAX_LENGTH = 500
COMMENT_MAX_LENGTH = 300

_HTML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "/": "&#x2F;",
}
_HTML_ESCAPE_RE = re.compile(r"[&<>\"'/]")


def escape_html(text: Any) -> Any:
    if not isinstance(text, str):
        return text
    return _HTML_ESCAPE_RE.sub(lambda match: _HTML_ESCAPES[match.group(0)], text)


def sanitize(text: Any, max_length: Optional[int] = None) -> str:
    """
    Trim, HTML-escape and truncate ``text``.

    Truncation happens after escaping, so a cut can land inside an entity
    such as ``&amp;``. Non-string or empty input yields ``""``.
    """
    if not text or not isinstance(text, str):
        return ""
    cleaned = escape_html(text.strip())
    if max_length and len(cleaned) > max_length:
        cleaned = cleaned[:max_length]
    return cleaned


def sanitize_name(name: Any) -> str:
    return sanitize(name, NAME_MAX_LENGTH)


def sanitize_bio(bio: Any) -> str:
    return sanitize(bio, BIO_MAX_LENGTH)


def sanitize_post_text(text: Any) -> str:
    return sanitize(text, POST_MAX_LENGTH)


def sanitize_comment_text(text: Any) -> str:
    return sanitize(text, COMMENT_MAX_LENGTH)
