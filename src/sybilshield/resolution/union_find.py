"""
Disjoint-set forest over actor identifiers and wallet strings.

Size-weighted union with full path compression. Nodes that were never
registered behave as singleton roots until a union attaches them.
"""

from typing import Iterable


class DisjointSet:
    """Union-find keyed by string nodes."""

    def __init__(self, items: Iterable[str] = ()):
        self._parent: dict[str, str] = {}
        self._size: dict[str, int] = {}
        for item in items:
            self._parent[item] = item
            self._size[item] = 1

    def find(self, x: str) -> str:
        """Find root with path compression."""
        root = x
        while True:
            parent = self._parent.get(root)
            if parent is None or parent == root:
                break
            root = parent

        # Second walk points every visited node straight at the root
        while x != root:
            parent = self._parent[x]
            self._parent[x] = root
            x = parent
        return root

    def union(self, a: str, b: str) -> None:
        """Union by size; on equal sizes b's root goes under a's root."""
        root_a = self.find(a)
        root_b = self.find(b)

        if root_a == root_b:
            return

        size_a = self._size.get(root_a, 1)
        size_b = self._size.get(root_b, 1)
        if size_a < size_b:
            self._parent[root_a] = root_b
            self._size[root_b] = size_a + size_b
        else:
            self._parent[root_b] = root_a
            self._size[root_a] = size_a + size_b

    def connected(self, a: str, b: str) -> bool:
        """Check whether two nodes share a component."""
        return self.find(a) == self.find(b)

    def component_size(self, x: str) -> int:
        """Size recorded at the root of x's component."""
        return self._size.get(self.find(x), 1)

    def __contains__(self, x: object) -> bool:
        return x in self._parent

    def __len__(self) -> int:
        return len(self._parent)
