"""
Layer splitting and parsing for whole InChI identifiers.
"""

import logging
import re
from typing import Dict, List, Optional

from .connection_layer import ConnectionComponent, parse_connection_layer
from .formula import FormulaEntry, parse_formula
from .hydrogen_layer import HydrogenAnnotation, parse_hydrogen_layer
from ..errors import IdentifierFormatError
from ..utils.memory_utils import ScratchArena

logger = logging.getLogger(__name__)

INCHI_PREFIX = 'InChI='

_STEREO_CENTER = re.compile(r'(\d+)[-+?u]')


def split_layers(identifier: str) -> Dict[str, str]:
    """
    Split an identifier into its layers.

    The version and formula are returned under ``'version'`` and
    ``'formula'``; every other layer is keyed by its one-letter prefix.
    Only the first occurrence of a prefix is kept, so the main ``/h``
    layer wins over the fixed-hydrogen one.

    Raises:
        IdentifierFormatError: If the identifier lacks the ``InChI=`` prefix
        GraphTooLargeError: If an atom number exceeds ``max_vertices``
    """
    if not identifier.startswith(INCHI_PREFIX):
        raise IdentifierFormatError("Inchi string doesn't begin with InChI=")

    parts = identifier[len(INCHI_PREFIX):].split('/')
    layers = {'version': parts[0]}
    rest = parts[1:]
    if rest and not (rest[0][:1].islower()):
        layers['formula'] = rest[0]
        rest = rest[1:]
    for part in rest:
        if part and part[0] not in layers:
            layers[part[0]] = part[1:]
    return layers


class ParsedIdentifier:
    """Everything the graph builder needs from one identifier."""

    def __init__(self, identifier: str, formula: List[FormulaEntry],
                 hydrogens: List[HydrogenAnnotation],
                 component: Optional[ConnectionComponent],
                 stereo_atoms: Optional[List[int]] = None,
                 has_connection_layer: bool = True,
                 messages: Optional[List[str]] = None):
        self.identifier = identifier
        self.formula = formula
        self.hydrogens = hydrogens
        self.component = component
        self.stereo_atoms = stereo_atoms or []
        self.has_connection_layer = has_connection_layer
        self.messages = messages or []

    @property
    def connection(self) -> str:
        """Connection text of the selected component ('' when there is none)."""
        return self.component.text if self.component is not None else ''


def _component_segment(layer: str, index: int) -> str:
    """Pick the ';'-separated segment of a per-component layer for ``index``."""
    position = 0
    for segment in layer.split(';'):
        multiplier = 1
        if '*' in segment:
            head, _, body = segment.partition('*')
            if head.isdigit():
                multiplier = int(head)
                segment = body
        if position <= index < position + multiplier:
            return segment
        position += multiplier
    return ''


def parse_identifier(identifier: str, scratch: Optional[ScratchArena] = None,
                     max_vertices: Optional[int] = None) -> ParsedIdentifier:
    """
    Parse an InChI identifier into formula, hydrogen and connection data.

    Args:
        identifier: Full identifier, e.g. ``InChI=1S/CH4/h1H4``
        scratch: Arena reused for the connection-layer workspace
        max_vertices: Optional ceiling on connection-layer atom numbers

    Returns:
        ParsedIdentifier; ``component`` is None when there is no usable
        connection layer and ``messages`` lists recoverable problems

    Raises:
        IdentifierFormatError: If the identifier lacks the ``InChI=`` prefix
        GraphTooLargeError: If an atom number exceeds ``max_vertices``
    """
    identifier = identifier.strip()
    layers = split_layers(identifier)
    messages: List[str] = []

    formula = parse_formula(layers.get('formula', ''), messages)
    hydrogens = parse_hydrogen_layer(layers.get('h', ''), messages)

    if 'c' not in layers:
        messages.append("InChI string doesn't have connection layer")
        logger.debug(f"No connection layer in {identifier}")
        return ParsedIdentifier(identifier, formula, hydrogens, None,
                                has_connection_layer=False, messages=messages)

    component = parse_connection_layer(layers['c'], scratch, messages, max_vertices)

    stereo_atoms = []
    if component is not None and 't' in layers:
        segment = _component_segment(layers['t'], component.index)
        stereo_atoms = [int(atom) for atom in _STEREO_CENTER.findall(segment)]

    return ParsedIdentifier(identifier, formula, hydrogens, component,
                            stereo_atoms=stereo_atoms, messages=messages)
