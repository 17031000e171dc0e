"""
Periodic table lookups backed by RDKit.

Elements are built once at import time and shared by reference, so two
lookups of the same symbol return the same object.
"""

import logging
import re
from typing import Dict, NamedTuple, Optional, Tuple

from rdkit import Chem

logger = logging.getLogger(__name__)

# Pauling electronegativities for the elements InChI strings commonly carry
ELECTRONEGATIVITY = {
    1: 2.20, 5: 2.04, 6: 2.55, 7: 3.04, 8: 3.44, 9: 3.98,
    14: 1.90, 15: 2.19, 16: 2.58, 17: 3.16, 20: 1.00, 26: 1.83,
    27: 1.88, 32: 2.01, 34: 2.55, 35: 2.96, 44: 2.20, 52: 2.10,
    53: 2.66, 78: 2.28, 80: 2.00, 82: 2.33,
}

MAX_ATOMIC_NUMBER = 118

_SYMBOL_PATTERN = re.compile(r'[A-Z][a-z]?')


class Element(NamedTuple):
    """Immutable periodic-table entry."""
    symbol: str
    atomic_number: int
    mass: float
    electronegativity: Optional[float]


def _build_table() -> Tuple[Dict[str, Element], Dict[int, Element]]:
    table = Chem.GetPeriodicTable()
    by_symbol = {}
    by_number = {}
    for atomic_number in range(1, MAX_ATOMIC_NUMBER + 1):
        try:
            symbol = table.GetElementSymbol(atomic_number)
            mass = table.GetAtomicWeight(atomic_number)
        except RuntimeError:
            logger.debug(f"RDKit periodic table stops before atomic number {atomic_number}")
            break
        element = Element(symbol, atomic_number, mass,
                          ELECTRONEGATIVITY.get(atomic_number))
        by_symbol[symbol] = element
        by_number[atomic_number] = element
    return by_symbol, by_number


_BY_SYMBOL, _BY_NUMBER = _build_table()

HYDROGEN = _BY_SYMBOL['H']


def lookup_by_symbol(symbol: str) -> Optional[Element]:
    """Return the element with exactly this symbol, or None."""
    return _BY_SYMBOL.get(symbol)


def lookup_by_atomic_number(atomic_number: int) -> Optional[Element]:
    return _BY_NUMBER.get(atomic_number)


def match_symbol(text: str, pos: int = 0) -> Tuple[Optional[Element], int]:
    """
    Match the element symbol starting at ``text[pos]``.

    Two-letter symbols win over their one-letter prefix ("Cl" is chlorine,
    not carbon followed by "l").

    Args:
        text: Text to scan
        pos: Offset of the first (uppercase) letter

    Returns:
        Tuple of (element or None, number of characters consumed). An
        unknown symbol consumes one character so scanning always advances.
    """
    match = _SYMBOL_PATTERN.match(text, pos)
    if match is None:
        return None, 1

    symbol = match.group()
    element = _BY_SYMBOL.get(symbol)
    if element is not None:
        return element, len(symbol)

    if len(symbol) == 2:
        element = _BY_SYMBOL.get(symbol[0])
        if element is not None:
            return element, 1

    return None, 1
