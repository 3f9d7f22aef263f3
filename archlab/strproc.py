"""An ordered collection of typed strings that can be joined by type."""

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Optional, TextIO

MAX_KIND = 0xFF


@dataclass(frozen=True)
class StringProcNode:
    """One string tagged with a small integer kind (0..255)."""

    kind: int
    value: str

    def __post_init__(self) -> None:
        if not 0 <= self.kind <= MAX_KIND:
            raise ValueError(f"kind must be in 0..{MAX_KIND}, got {self.kind}")
        if not isinstance(self.value, str):
            raise TypeError(f"value must be a string, got {type(self.value).__name__}")


class StringProcList:
    """Typed strings kept in insertion order."""

    def __init__(self) -> None:
        self._nodes: list[StringProcNode] = []

    @property
    def first(self) -> Optional[StringProcNode]:
        return self._nodes[0] if self._nodes else None

    @property
    def last(self) -> Optional[StringProcNode]:
        return self._nodes[-1] if self._nodes else None

    def add_node(self, kind: int, value: str) -> StringProcNode:
        """Append a string of the given kind and return its node."""
        node = StringProcNode(kind, value)
        self._nodes.append(node)
        return node

    def concat(self, kind: int, value: str) -> str:
        """Return ``value`` followed by every string of ``kind``, in order."""
        if not isinstance(value, str):
            raise TypeError("value must be a string")
        return value + "".join(node.value for node in self._nodes if node.kind == kind)

    def print_to(self, file: TextIO) -> None:
        """Write the length of the list and each of its nodes to ``file``."""
        file.write(f"List length: {len(self._nodes)}\n")
        for node in self._nodes:
            file.write(f"\tnode hash: {node.value} | type: {node.kind}\n")

    def __iter__(self) -> Iterator[StringProcNode]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)