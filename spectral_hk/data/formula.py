"""
Parser for the formula layer of an InChI identifier.

The formula layer is the dot-separated list of component formulas, e.g.
``C2H6O`` or ``2C2H3O2.Ca``. A leading count multiplies a component; the
parser expands it into one run of entries per copy so that component
indices line up with the connection layer.
"""

import logging
from typing import List, Optional

from .periodic import Element, HYDROGEN, match_symbol

logger = logging.getLogger(__name__)


class FormulaEntry:
    """One element run in a component formula."""

    __slots__ = ('index', 'count', 'element')

    def __init__(self, index: int, count: int, element: Element):
        self.index = index
        self.count = count
        self.element = element

    def clone(self, index: int) -> 'FormulaEntry':
        return FormulaEntry(index, self.count, self.element)

    def __eq__(self, other):
        if not isinstance(other, FormulaEntry):
            return NotImplemented
        return (self.index, self.count, self.element) == (other.index, other.count, other.element)

    def __repr__(self):
        return f"FormulaEntry(index={self.index}, count={self.count}, element={self.element.symbol})"


def parse_formula(text: str, errors: Optional[List[str]] = None) -> List[FormulaEntry]:
    """
    Parse a formula layer into an ordered list of element runs.

    Args:
        text: The formula layer, without the surrounding slashes
        errors: Optional list that receives recoverable parse messages

    Returns:
        Entries in identifier order; multiplied components are expanded
    """
    if errors is None:
        errors = []

    entries: List[FormulaEntry] = []
    index = 0
    element = None
    count = 0
    multiplier = 1
    pos = 0

    def flush():
        nonlocal index
        entries.append(FormulaEntry(index, count, element))
        if multiplier > 1:
            run = [entry for entry in entries if entry.index == index]
            for _ in range(multiplier - 1):
                index += 1
                entries.extend(entry.clone(index) for entry in run)

    while pos < len(text):
        ch = text[pos]
        if ch.isalpha():
            # A new symbol closes the previous run without expanding it
            if element is not None:
                entries.append(FormulaEntry(index, count, element))
            element, width = match_symbol(text, pos)
            pos += width
            if element is None:
                errors.append("Unknown atom in formula")
                logger.warning(f"Unknown atom in formula '{text}' at offset {pos - width}")
                count = 0
                multiplier = 1
            else:
                count = 1
        elif ch.isdigit():
            end = pos
            while end < len(text) and text[end].isdigit():
                end += 1
            count = int(text[pos:end])
            if element is None:
                multiplier = count
            pos = end
        elif ch == '.':
            if element is not None:
                flush()
            element = None
            count = 0
            multiplier = 1
            index += 1
            pos += 1
        else:
            errors.append(f"Unknown character '{ch}' in formula")
            logger.warning(f"Unknown character '{ch}' in formula '{text}'")
            pos += 1

    if element is not None:
        flush()

    return entries


def component_atom_count(entries: List[FormulaEntry], index: int,
                         include_hydrogen: bool = False) -> int:
    """Count the atoms the formula assigns to one component."""
    return sum(entry.count for entry in entries
               if entry.index == index and (include_hydrogen or entry.element is not HYDROGEN))


def format_formula(entries: List[FormulaEntry]) -> str:
    """Render entries back into dot-separated formula text (without multipliers)."""
    components = []
    current = None
    for entry in entries:
        if entry.index != current:
            components.append([])
            current = entry.index
        count = '' if entry.count == 1 else str(entry.count)
        components[-1].append(f"{entry.element.symbol}{count}")
    return '.'.join(''.join(parts) for parts in components)
