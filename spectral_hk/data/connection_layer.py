"""
Parser for the ``/c`` (connection table) layer.

Each ';'-separated segment describes one connected component as a walk
over atom numbers: ``-`` continues the chain, ``(`` opens a branch that
``)`` closes, and ``,`` starts a sibling branch. Only the component with
the most vertices survives, since that is the graph that gets hashed.
"""

import logging
import re
from typing import List, Optional

import numpy as np

from ..errors import GraphTooLargeError
from ..utils.memory_utils import ScratchArena

logger = logging.getLogger(__name__)

_NUMBER = re.compile(r'\d+')
_MULTIPLIER = re.compile(r'^(\d+)\*')


class ConnectionComponent:
    """
    Largest connected component found in a connection layer.

    Attributes:
        index: Component index, counting multiplied segments once per copy
        multiplier: Number of identical copies the segment stands for
        text: Segment text with any ``n*`` prefix removed
        adjacency: Symmetric 0/1 matrix over the component's vertices
    """

    def __init__(self, index: int, multiplier: int, text: str, adjacency: np.ndarray):
        self.index = index
        self.multiplier = multiplier
        self.text = text
        self.adjacency = adjacency

    @property
    def vertex_count(self) -> int:
        return self.adjacency.shape[0]

    def __repr__(self):
        return (f"ConnectionComponent(index={self.index}, vertices={self.vertex_count}, "
                f"text='{self.text}')")


def parse_segment(text: str, adjacency: np.ndarray, errors: Optional[List[str]] = None) -> int:
    """
    Fill ``adjacency`` from one component's connection text.

    Atom numbers are 1-based in the text and 0-based in the matrix.

    Args:
        text: Segment text, e.g. ``1-2-3(4)5``
        adjacency: Zeroed square matrix large enough for every atom number
        errors: Optional list that receives parse messages

    Returns:
        Largest atom number seen (0 for an empty segment), or -1 when the
        segment contains a character outside the grammar
    """
    if errors is None:
        errors = []

    def link(a: int, b: int):
        if a > 0 and b > 0 and a != b:
            adjacency[a - 1, b - 1] = 1
            adjacency[b - 1, a - 1] = 1

    stack: List[int] = []
    separator = None
    previous = 0
    largest = 0
    pos = 0

    while pos < len(text):
        match = _NUMBER.match(text, pos)
        if match is not None:
            value = int(match.group())
            pos = match.end()
        else:
            value = 0
        largest = max(largest, value)

        if separator is None:
            pass
        elif separator == '(':
            stack.append(previous)
            link(previous, value)
        elif separator == '-':
            link(previous, value)
        elif separator == ')':
            if stack:
                link(stack.pop(), value)
            else:
                errors.append("Mismatch ()'s in connection layer")
                logger.warning(f"Mismatch ()'s in connection layer '{text}'")
        elif separator == ',':
            if stack:
                link(stack[-1], value)
            else:
                errors.append("Character ',' not within () block")
                logger.warning(f"Character ',' not within () block in '{text}'")
        elif separator == '*':
            largest = value
        else:
            errors.append(f"Unknown character '{separator}' in connection layer")
            logger.warning(f"Unknown character '{separator}' in connection layer '{text}'")
            return -1

        previous = value
        if pos < len(text):
            separator = text[pos]
            pos += 1

    if separator is not None and separator not in '-(),*':
        errors.append(f"Unknown character '{separator}' in connection layer")
        logger.warning(f"Unknown character '{separator}' in connection layer '{text}'")
        return -1

    return largest


def parse_connection_layer(text: str, scratch: Optional[ScratchArena] = None,
                           errors: Optional[List[str]] = None,
                           max_vertices: Optional[int] = None) -> Optional[ConnectionComponent]:
    """
    Parse a whole connection layer and keep its largest component.

    Args:
        text: Layer text without the leading ``c``
        scratch: Arena providing the adjacency workspace
        errors: Optional list that receives parse messages
        max_vertices: Largest atom number accepted, checked before any
            workspace is allocated

    Returns:
        The component with strictly the most vertices (first wins on ties),
        or None when no segment parsed

    Raises:
        GraphTooLargeError: If an atom number exceeds ``max_vertices``
    """
    if scratch is None:
        scratch = ScratchArena()
    if errors is None:
        errors = []

    best = None
    index = 0
    for segment in text.split(';'):
        multiplier = 1
        match = _MULTIPLIER.match(segment)
        if match is not None:
            multiplier = int(match.group(1))
            segment = segment[match.end():]

        numbers = [int(n) for n in _NUMBER.findall(segment)]
        size = max(numbers, default=0)
        if max_vertices is not None and size > max_vertices:
            raise GraphTooLargeError(
                f"Graph is too large ({size} > {max_vertices}) for eigensolver")
        workspace = scratch.adjacency(size)
        largest = parse_segment(segment, workspace, errors)

        if largest < 0:
            logger.warning(f"Discarding connection component {index}")
        elif largest > 0 and (best is None or largest > best.vertex_count):
            best = ConnectionComponent(index, multiplier, segment,
                                       workspace[:largest, :largest].copy())
        index += multiplier

    if best is not None:
        logger.debug(f"Selected connection component {best.index} with "
                     f"{best.vertex_count} vertices: {best.text}")
    return best
