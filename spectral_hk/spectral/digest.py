"""
Spectral hash key computation.

A key has three base-32 segments chained through SHA-1:

    topology    SHA-1 of the quantized normalized-Laplacian spectrum
    connection  SHA-1 of the topology digest plus the connection-layer text
    full        SHA-1 of the connection digest plus the whole identifier

Two structures that share a graph share the first segment; the later
segments separate them by connection numbering and by every other layer.
"""

import hashlib
import logging
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np

from .. import __version__
from .b32 import encode
from .eigensolver import SymmetricEigensolver, create_eigensolver
from .laplacian import normalized_laplacian
from .quantizer import IntervalTree
from ..data.bond_features import bond_energy_length
from ..data.bond_orders import BondOrderReport, assign_bond_orders
from ..data.graph_construction import MolecularGraph, build_graph
from ..data.identifier import ParsedIdentifier, parse_identifier
from ..data.ring_perception import perceive_rings
from ..errors import (EigensolverError, GraphConsistencyError, GraphTooLargeError,
                      IdentifierFormatError)
from ..utils.config_utils import HashKeyConfigValidator
from ..utils.memory_utils import ScratchArena

logger = logging.getLogger(__name__)


class ErrorKind(Enum):
    FORMAT = 'format'
    GRAMMAR = 'grammar'
    CONSISTENCY = 'consistency'
    RESOURCE = 'resource'
    NUMERICAL = 'numerical'


class DigestError:
    """Why a digest failed."""

    __slots__ = ('kind', 'message')

    def __init__(self, kind: ErrorKind, message: str):
        self.kind = kind
        self.message = message

    def __str__(self):
        return self.message

    def __repr__(self):
        return f"DigestError({self.kind.name}, '{self.message}')"


class DigestResult:
    """
    Outcome of digesting one identifier.

    A successful result carries the key and its segments. A result with
    no connection layer succeeds with an empty key. A failed result has
    ``error`` set and no key.
    """

    def __init__(self, identifier: str, segments: Tuple[str, ...] = (),
                 spectrum: Optional[np.ndarray] = None,
                 fiedler: Optional[np.ndarray] = None,
                 messages: Optional[List[str]] = None,
                 error: Optional[DigestError] = None,
                 graph: Optional[MolecularGraph] = None,
                 bond_orders: Optional[BondOrderReport] = None):
        self.identifier = identifier
        self.segments = segments
        self.spectrum = spectrum if spectrum is not None else np.zeros(0)
        self.fiedler = fiedler
        self.messages = messages or []
        self.error = error
        self.graph = graph
        self.bond_orders = bond_orders

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def empty(self) -> bool:
        return self.ok and not self.segments

    @property
    def hashkey(self) -> Optional[str]:
        if not self.ok:
            return None
        return ''.join(self.segments)

    def bonds(self) -> List[Dict]:
        """Per-edge order, energy and length of the digested graph."""
        if self.graph is None:
            return []
        rows = []
        for edge in self.graph.edges:
            energy, length = bond_energy_length(self.graph, edge)
            rows.append({
                'u': edge.u + 1,
                'v': edge.v + 1,
                'order': edge.order,
                'ring': edge.ring,
                'energy': energy,
                'length': length,
            })
        return rows

    def to_dict(self, details: bool = False) -> Dict:
        result = {
            'identifier': self.identifier,
            'hashkey': self.hashkey,
            'segments': list(self.segments),
            'error': self.error.message if self.error else None,
            'error_kind': self.error.kind.value if self.error else None,
            'messages': list(self.messages),
        }
        if details and self.graph is not None:
            result['graph'] = self.graph.summary()
            result['bonds'] = self.bonds()
            if self.bond_orders is not None:
                result['bond_orders'] = self.bond_orders.to_dict()
        return result


class SpectralHasher:
    """
    Reusable handle computing spectral hash keys.

    The handle keeps scratch buffers and the result of its last digest,
    so one handle must not be shared between threads; give each worker
    its own.
    """

    VERSION = __version__

    def __init__(self, config: Optional[Dict] = None,
                 eigensolver: Optional[SymmetricEigensolver] = None):
        """
        Initialize hasher.

        Args:
            config: Configuration dictionary (validated and completed with defaults)
            eigensolver: Solver overriding the configured one
        """
        self.config = HashKeyConfigValidator.validate(config)
        spectral = self.config['spectral']
        self.max_vertices = spectral['max_vertices']
        self.round_off = spectral['round_off']
        self.zero_tolerance = spectral['zero_tolerance']
        self.segment_bits = tuple(spectral['segment_bits'])
        self.max_ring_size = self.config['rings']['max_ring_size']

        low, high = spectral['spectrum_range']
        self.quantizer = IntervalTree(low, high, spectral['quantizer_bits'])
        if eigensolver is None:
            if spectral['eigensolver'] == 'jacobi':
                eigensolver = create_eigensolver('jacobi', max_sweeps=spectral['max_sweeps'])
            else:
                eigensolver = create_eigensolver(spectral['eigensolver'])
        self.eigensolver = eigensolver

        self.scratch = ScratchArena()
        self._last: Optional[DigestResult] = None
        self._size = 0
        self._spectrum = np.zeros(0)
        self._vectors = np.zeros((0, 0))

    @staticmethod
    def version() -> str:
        return SpectralHasher.VERSION

    # Accessors for the last digest

    @property
    def hashkey(self) -> Optional[str]:
        return self._last.hashkey if self._last is not None else None

    @property
    def error(self) -> Optional[str]:
        if self._last is None or self._last.error is None:
            return None
        return self._last.error.message

    @property
    def size(self) -> int:
        """Vertex count of the last digested graph."""
        return self._size

    @property
    def spectrum(self) -> np.ndarray:
        return self._spectrum.copy()

    @property
    def fiedler(self) -> Optional[np.ndarray]:
        return self._last.fiedler if self._last is not None else None

    def vector(self, k: int) -> np.ndarray:
        """Eigenvector of the k-th smallest eigenvalue of the last graph."""
        if not 0 <= k < self._size:
            raise IndexError(f"Eigenvector {k} out of range for graph of size {self._size}")
        return self._vectors[:, k].copy()

    # Pipeline

    def _fail(self, identifier: str, kind: ErrorKind, message: str,
              messages: Optional[List[str]] = None) -> DigestResult:
        logger.warning(f"{kind.value} error for {identifier}: {message}")
        self._last = DigestResult(identifier, messages=messages, error=DigestError(kind, message))
        return self._last

    def digest(self, identifier: str) -> DigestResult:
        """
        Compute the hash key of one identifier.

        Args:
            identifier: InChI identifier

        Returns:
            DigestResult; also retained as this handle's last result
        """
        identifier = identifier.strip()
        self._last = None
        self._size = 0
        self._spectrum = np.zeros(0)
        self._vectors = np.zeros((0, 0))

        try:
            parsed = parse_identifier(identifier, self.scratch, self.max_vertices)
        except IdentifierFormatError as e:
            return self._fail(identifier, ErrorKind.FORMAT, str(e))
        except GraphTooLargeError as e:
            return self._fail(identifier, ErrorKind.RESOURCE, str(e))

        if parsed.component is None:
            if parsed.has_connection_layer:
                return self._fail(identifier, ErrorKind.GRAMMAR,
                                  "No usable component in connection layer", parsed.messages)
            logger.debug(f"No connection layer, empty key for {identifier}")
            self._last = DigestResult(identifier, messages=parsed.messages)
            return self._last

        try:
            graph, bond_report = self.analyze(parsed)
        except GraphTooLargeError as e:
            return self._fail(identifier, ErrorKind.RESOURCE, str(e), parsed.messages)
        except GraphConsistencyError as e:
            return self._fail(identifier, ErrorKind.CONSISTENCY, str(e), parsed.messages)

        try:
            values, vectors = self.eigensolver.decompose(normalized_laplacian(graph.adjacency))
        except EigensolverError as e:
            return self._fail(identifier, ErrorKind.NUMERICAL, str(e),
                              parsed.messages + graph.messages)

        self._size = graph.vertex_count
        self._spectrum = self.scratch.spectrum(self._size)
        self._spectrum[:] = values
        self._vectors = vectors
        fiedler = self._fiedler(values, vectors)
        segments = self.build_segments(values, graph.connection, identifier)

        self._last = DigestResult(identifier, segments, spectrum=values.copy(), fiedler=fiedler,
                                  messages=parsed.messages + graph.messages,
                                  graph=graph, bond_orders=bond_report)
        return self._last

    def analyze(self, parsed: ParsedIdentifier) -> Tuple[MolecularGraph, BondOrderReport]:
        """
        Build the graph of a parsed identifier and run ring and bond-order perception.

        Raises:
            GraphTooLargeError: If the component exceeds ``max_vertices``
            GraphConsistencyError: If edge closure fails
        """
        size = parsed.component.vertex_count
        if size > self.max_vertices:
            raise GraphTooLargeError(
                f"Graph is too large ({size} > {self.max_vertices}) for eigensolver")

        graph = build_graph(parsed)
        perceive_rings(graph, self.max_ring_size)
        bond_report = assign_bond_orders(graph)
        return graph, bond_report

    def _fiedler(self, values: np.ndarray, vectors: np.ndarray) -> Optional[np.ndarray]:
        """Eigenvector of the smallest non-zero eigenvalue, sign-normalized."""
        nonzero = np.flatnonzero(values >= self.zero_tolerance)
        if nonzero.size == 0:
            return None
        vector = vectors[:, nonzero[0]].copy()
        leading = np.flatnonzero(np.abs(vector) > self.zero_tolerance)
        if leading.size and vector[leading[0]] < 0:
            vector = -vector
        return vector

    def spectrum_bytes(self, values: np.ndarray) -> bytes:
        """
        Quantized spectrum as hashed for the topology segment.

        The leading run of near-zero eigenvalues (one per connected
        component) is skipped; the first eigenvalue is always skipped.
        """
        start = 1
        while start < len(values) and values[start] < self.zero_tolerance:
            start += 1
        return b''.join(self.quantizer.encode_bytes(float(value), self.round_off)
                        for value in values[start:])

    def build_segments(self, values: np.ndarray, connection: str,
                       identifier: str) -> Tuple[str, str, str]:
        """Chain the three digests and encode each as a key segment."""
        topology = hashlib.sha1(self.spectrum_bytes(values)).digest()

        sha = hashlib.sha1(topology)
        sha.update(connection.encode('utf-8'))
        connection_digest = sha.digest()

        sha = hashlib.sha1(connection_digest)
        sha.update(identifier.encode('utf-8'))
        full = sha.digest()

        first, second, third = self.segment_bits
        return encode(topology, first), encode(connection_digest, second), encode(full, third)

    def release(self):
        """Drop the last result and the scratch buffers."""
        self._last = None
        self._size = 0
        self._spectrum = np.zeros(0)
        self._vectors = np.zeros((0, 0))
        self.scratch.release()


def compute_hashkey(identifier: str, config: Optional[Dict] = None) -> Optional[str]:
    """One-shot helper: hash key of ``identifier`` or None on failure."""
    return SpectralHasher(config).digest(identifier).hashkey
