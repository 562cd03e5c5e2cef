"""HTML encoding for template output.

Values exposing ``__html__`` are already encoded and are written verbatim;
everything else is converted with ``str`` and escaped.
"""

from __future__ import annotations

from typing import Any

_ESCAPE_TABLE = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#39;",
    }
)


class RawString(str):
    """A string that is written without encoding.

    Example:
        >>> html_escape(RawString("<b>bold</b>"))
        '<b>bold</b>'
    """

    __slots__ = ()

    def __html__(self) -> str:
        return self

    def __repr__(self) -> str:
        return f"RawString({str.__repr__(self)})"


def html_escape(value: Any) -> str:
    """Encode ``value`` for HTML output.

    Example:
        >>> html_escape('<a href="x">Tom & Jerry\\'s</a>')
        '&lt;a href=&quot;x&quot;&gt;Tom &amp; Jerry&#39;s&lt;/a&gt;'
    """
    html = getattr(value, "__html__", None)
    if html is not None:
        return str(html())
    return str(value).translate(_ESCAPE_TABLE)


def no_escape(value: Any) -> str:
    """Encoder used when ``EngineConfig.encoding`` is ``"raw"``."""
    html = getattr(value, "__html__", None)
    if html is not None:
        return str(html())
    return str(value)
