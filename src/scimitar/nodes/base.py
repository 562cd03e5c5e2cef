"""Base node class for the scimitar template tree."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Node:
    """Base class for all template nodes.

    ``lineno``/``col_offset`` locate the node in the original template text;
    for nodes carrying Python text they point at the first character of that
    text, so generated lines can be mapped back exactly. Nodes are immutable.

    """

    lineno: int
    col_offset: int
