"""Fixed 64 slot node set used for cluster synchronization and quorum.

Node identities are small integers (0-63) assigned by the cluster membership
registry. A :class:`NodeBitVector` stores a set of them in a single 64-bit
word, so membership, intersection and union are constant time and allocate
nothing worth mentioning. Values are immutable: every operation returns a
new vector, which makes them safe to share between threads.

The 64 node ceiling is a hard limit. Fleets larger than that need a
multi-word bit set.

Example usage:

    >>> from missioncontrol.cluster import NodeBitVector
    >>>
    >>> selected = NodeBitVector.from_indices([0, 1, 5])
    >>> healthy = NodeBitVector.from_index(1).set_bit(5)
    >>> quorum = selected.mask_bits(healthy)
    >>> quorum.indices()
    [1, 5]
"""

from __future__ import annotations

from typing import Iterable, Iterator, List

import numpy as np

LENGTH = 64
_ALL_BITS = (1 << LENGTH) - 1


def _check_index(index: int) -> int:
    if isinstance(index, bool) or not isinstance(index, (int, np.integer)):
        raise TypeError(f"Node index must be an integer, got {type(index).__name__}")
    index = int(index)
    if not 0 <= index < LENGTH:
        raise IndexError(f"Node index {index} out of range 0-{LENGTH - 1}")
    return index


class NodeBitVector:
    """Immutable set of node indices packed in a 64-bit word."""

    __slots__ = ("_bits",)

    LENGTH = LENGTH

    def __init__(self, bits: int = 0) -> None:
        bits = int(bits)
        if not 0 <= bits <= _ALL_BITS:
            raise ValueError(f"Bit pattern {bits:#x} does not fit in {LENGTH} bits")
        object.__setattr__(self, "_bits", bits)

    def __setattr__(self, name, value):
        raise AttributeError("NodeBitVector is immutable")

    @classmethod
    def from_index(cls, index: int) -> "NodeBitVector":
        """Vector with only the bit at ``index`` set."""
        return cls(1 << _check_index(index))

    @classmethod
    def from_indices(cls, indices: Iterable[int]) -> "NodeBitVector":
        bits = 0
        for index in indices:
            bits |= 1 << _check_index(index)
        return cls(bits)

    @classmethod
    def from_array(cls, mask: np.ndarray) -> "NodeBitVector":
        """Build from a boolean mask of length 64 (element i is node i)."""
        mask = np.asarray(mask, dtype=bool)
        if mask.shape != (LENGTH,):
            raise ValueError(f"Mask must have shape ({LENGTH},), got {mask.shape}")
        packed = np.packbits(mask, bitorder="little")
        return cls(int(packed.view("<u8")[0]))

    @property
    def bits(self) -> int:
        """Raw 64-bit pattern."""
        return self._bits

    def __getitem__(self, index: int) -> bool:
        return bool(self._bits & (1 << _check_index(index)))

    def set_bit(self, index: int) -> "NodeBitVector":
        return NodeBitVector(self._bits | (1 << _check_index(index)))

    def unset_bit(self, index: int) -> "NodeBitVector":
        return NodeBitVector(self._bits & ~(1 << _check_index(index)))

    def mask_bits(self, other: "NodeBitVector") -> "NodeBitVector":
        """Nodes present in both ``self`` and ``other``."""
        return NodeBitVector(self._bits & other._bits)

    def any(self) -> bool:
        return self._bits != 0

    def count(self) -> int:
        return bin(self._bits).count("1")

    def indices(self) -> List[int]:
        return [i for i in range(LENGTH) if self._bits & (1 << i)]

    def to_array(self) -> np.ndarray:
        """Boolean mask of length 64 (element i is node i)."""
        word = np.array([self._bits], dtype="<u8")
        return np.unpackbits(word.view(np.uint8), bitorder="little").astype(bool)

    def __and__(self, other: "NodeBitVector") -> "NodeBitVector":
        if not isinstance(other, NodeBitVector):
            return NotImplemented
        return self.mask_bits(other)

    def __or__(self, other: "NodeBitVector") -> "NodeBitVector":
        if not isinstance(other, NodeBitVector):
            return NotImplemented
        return NodeBitVector(self._bits | other._bits)

    def __iter__(self) -> Iterator[int]:
        return iter(self.indices())

    def __len__(self) -> int:
        return self.count()

    def __bool__(self) -> bool:
        return self.any()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NodeBitVector):
            return NotImplemented
        return self._bits == other._bits

    def __hash__(self) -> int:
        return hash(self._bits)

    def __repr__(self) -> str:
        return f"NodeBitVector({self._bits:#018x})"

    def __reduce__(self):
        return (NodeBitVector, (self._bits,))


NodeBitVector.EMPTY = NodeBitVector(0)
NodeBitVector.ONES = NodeBitVector(_ALL_BITS)
