"""
Parser for the ``/h`` (fixed and mobile hydrogen) layer.

Grammar summary:
    ``1-3``        atoms 1, 2 and 3
    ``2H2``        atom 2 carries two hydrogens
    ``(H,3,4)``    one hydrogen shared by atoms 3 and 4 (a mobile group)
    ``;``          next connected component
    ``2*``         the following segment covers two identical components
"""

import logging
import re
from typing import List, Optional

logger = logging.getLogger(__name__)

_NUMBER = re.compile(r'\d+')
_GROUP_HEAD = re.compile(r'H\d*$')


class HydrogenAnnotation:
    """Hydrogen count attached to one atom of one component."""

    __slots__ = ('component', 'atom', 'count', 'group')

    def __init__(self, component: int, atom: int, count: int = 0, group: int = 0):
        self.component = component
        self.atom = atom
        self.count = count
        self.group = group

    def __repr__(self):
        return (f"HydrogenAnnotation(component={self.component}, atom={self.atom}, "
                f"count={self.count}, group={self.group})")


def _read_number(text: str, pos: int):
    match = _NUMBER.match(text, pos)
    if match is None:
        return 0, pos
    return int(match.group()), match.end()


def parse_hydrogen_layer(text: str, errors: Optional[List[str]] = None) -> List[HydrogenAnnotation]:
    """
    Parse the body of an ``/h`` layer (without the leading ``h``).

    Args:
        text: Layer text
        errors: Optional list that receives recoverable parse messages

    Returns:
        Annotations in the order they appear
    """
    if errors is None:
        errors = []

    annotations: List[HydrogenAnnotation] = []
    component = 0
    multiplier = 1
    number = 0
    count = 0
    group = 0
    shared = False
    pos = 0

    def annotate(atom: int):
        annotation = HydrogenAnnotation(component, atom)
        if shared:
            annotation.count = count
            annotation.group = group
        annotations.append(annotation)

    while pos < len(text):
        ch = text[pos]
        if ch in '123456789':
            number, pos = _read_number(text, pos)
            if pos < len(text) and text[pos] == '*':
                # Component multiplier, consumed by ';'
                multiplier = number
                logger.debug(f"/h segment covers {multiplier} components")
            else:
                annotate(number)
        elif ch == '-' and shared and _GROUP_HEAD.search(text, 0, pos):
            # Charge sign of a mobile group, e.g. (H-,1,2)
            pos += 1
        elif ch == '-':
            first = number
            number, pos = _read_number(text, pos + 1)
            if first > 0 and number > first:
                for atom in range(first + 1, number + 1):
                    annotate(atom)
            else:
                errors.append("Invalid range in /h layer")
                logger.warning(f"Invalid range in /h layer '{text}'")
            number = 0
        elif ch == 'H':
            count, pos = _read_number(text, pos + 1)
            if count == 0:
                count = 1
            if not shared:
                for annotation in annotations:
                    if annotation.count == 0:
                        annotation.count = count
        elif ch == '(':
            shared = not shared
            group += 1
            pos += 1
        elif ch == ')':
            shared = not shared
            pos += 1
        elif ch == ';':
            component += multiplier
            multiplier = 1
            pos += 1
        elif ch in ',*':
            pos += 1
        else:
            errors.append(f"Unknown character '{ch}' in /h layer")
            logger.warning(f"Unknown character '{ch}' in /h layer '{text}'")
            pos += 1

    return annotations
