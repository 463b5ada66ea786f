"""
Prefix Index — Trie over the secret names present in a store.

Built once from a single listing and shared by every secret of a batch. Exact
and prefix lookups cost time proportional to the queried string, not to the
number of indexed names.
"""
from collections.abc import Iterable, Iterator
from typing import Optional


class _Node:
    __slots__ = ("children", "terminal")

    def __init__(self) -> None:
        self.children: dict[str, "_Node"] = {}
        self.terminal = False


class PrefixIndex:
    """Read-mostly set of names supporting prefix queries."""

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._root = _Node()
        self._size = 0
        for name in names:
            self.add(name)

    @classmethod
    def build(cls, names: Iterable[str]) -> "PrefixIndex":
        """Build an index from a snapshot of store entry names."""
        return cls(names)

    def __repr__(self) -> str:
        return f"<PrefixIndex names={self._size}>"

    def _find_node(self, key: str) -> Optional[_Node]:
        node = self._root
        for char in key:
            node = node.children.get(char)
            if node is None:
                return None
        return node

    def add(self, name: str) -> None:
        """Index ``name``. Adding a name twice is a no-op."""
        node = self._root
        for char in name:
            node = node.children.setdefault(char, _Node())
        if not node.terminal:
            node.terminal = True
            self._size += 1

    def exists(self, name: str) -> bool:
        """Return True if ``name`` itself is indexed."""
        node = self._find_node(name)
        return node is not None and node.terminal

    def find_by_prefix(self, prefix: str) -> set[str]:
        """Return every indexed name starting with ``prefix``.

        The prefix itself is included when it is an indexed name.
        """
        node = self._find_node(prefix)
        if node is None:
            return set()
        return set(self._walk(node, prefix))

    def _walk(self, node: _Node, prefix: str) -> Iterator[str]:
        # Iterative depth-first walk yielding names in lexicographic order
        stack = [(node, prefix)]
        while stack:
            current, path = stack.pop()
            if current.terminal:
                yield path
            for char in sorted(current.children, reverse=True):
                stack.append((current.children[char], path + char))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.exists(name)

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[str]:
        return self._walk(self._root, "")
