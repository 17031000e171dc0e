"""
Interval-tree quantization of eigenvalues.

The range [start, end] is split in halves down to a fixed number of
leaves. A value sets the bit of every leaf whose interval it falls in,
widened by a small slack at each split, so values within the slack of a
boundary light up both neighbors and small numerical noise does not
flip the code.
"""

from typing import List, Optional, Tuple

ROUND_OFF = 0.0005


class IntervalNode:
    """One node of the interval tree; leaves carry a bit position."""

    __slots__ = ('start', 'end', 'left', 'right', 'leaf_id')

    def __init__(self, start: float, end: float):
        self.start = start
        self.end = end
        self.left: Optional['IntervalNode'] = None
        self.right: Optional['IntervalNode'] = None
        self.leaf_id = -1

    @property
    def split(self) -> float:
        return self.start + (self.end - self.start) / 2.0

    @property
    def is_leaf(self) -> bool:
        return self.left is None


class IntervalTree:
    """
    Balanced binary partition of [start, end] with ``bits`` leaves.

    Args:
        start: Lower end of the range
        end: Upper end of the range
        bits: Number of leaves, and width of the produced codes in bits
    """

    def __init__(self, start: float = 0.0, end: float = 2.0, bits: int = 32):
        if bits < 1 or bits & (bits - 1):
            raise ValueError(f"bits must be a power of two, got {bits}")
        if end <= start:
            raise ValueError(f"Empty interval [{start}, {end}]")
        self.start = start
        self.end = end
        self.bits = bits
        self._leaves: List[IntervalNode] = []
        self.root = self._build(start, end, 0)

    def _build(self, start: float, end: float, depth: int) -> IntervalNode:
        node = IntervalNode(start, end)
        if (1 << (depth + 1)) <= self.bits:
            node.left = self._build(start, node.split, depth + 1)
            node.right = self._build(node.split, end, depth + 1)
        else:
            node.leaf_id = len(self._leaves)
            self._leaves.append(node)
        return node

    @property
    def leaf_width(self) -> float:
        return (self.end - self.start) / self.bits

    def leaves(self) -> List[Tuple[float, float]]:
        """Leaf intervals, left to right (leaf ``i`` is bit ``i``)."""
        return [(leaf.start, leaf.end) for leaf in self._leaves]

    def encode(self, value: float, slack: float = ROUND_OFF) -> int:
        """Return the leaf bitmask for ``value``."""
        code = 0
        stack = [self.root]
        while stack:
            node = stack.pop()
            if node.is_leaf:
                code |= 1 << node.leaf_id
                continue
            split = node.split
            if value >= split - slack:
                stack.append(node.right)
            if value <= split + slack:
                stack.append(node.left)
        return code

    @property
    def code_size(self) -> int:
        """Bytes per encoded value."""
        return (self.bits + 7) // 8

    def encode_bytes(self, value: float, slack: float = ROUND_OFF) -> bytes:
        """Big-endian fixed-width form of ``encode``."""
        return self.encode(value, slack).to_bytes(self.code_size, 'big')
