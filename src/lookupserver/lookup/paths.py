"""
Path segment parsing for the lookup route.

Classification only ever looks at two positions of the request path:

    /items/123
     ──┬── ─┬─
       │    └── second segment: the item id
       └─────── first segment: must equal the configured route

Splitting the path once into a structured value keeps the handler free of
string indexing.
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class PathSegments:
    """
    Ordered segments of a request path, without the leading slash.

        split_path("/items/123")  → PathSegments(("items", "123"))
        split_path("/items/")     → PathSegments(("items", ""))
        split_path("/items")      → PathSegments(("items",))
        split_path("/")           → PathSegments(("",))

    Empty segments are kept so that "/items/" (empty id) and "/items"
    (no id) are both visible to callers; both count as a missing id.
    """

    segments: Tuple[str, ...] = ()

    def get(self, index: int) -> str:
        """Segment at ``index``, or "" when the path is shorter."""
        if 0 <= index < len(self.segments):
            return self.segments[index]
        return ""

    @property
    def first(self) -> str:
        return self.get(0)

    @property
    def second(self) -> str:
        return self.get(1)

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self):
        return iter(self.segments)


def split_path(path: str) -> PathSegments:
    """
    Split a request path (no query string) into its segments.

    Args:
        path: Request path as sent, normally starting with "/".

    Returns:
        PathSegments for the path.
    """
    if path.startswith("/"):
        path = path[1:]
    return PathSegments(tuple(path.split("/")))
