"""
Exception hierarchy for spectral hash key computation.
"""


class SpectralError(Exception):
    """Base class for errors raised while computing a spectral hash key."""
    pass


class IdentifierFormatError(SpectralError):
    """Raised when the input does not look like an InChI identifier."""
    pass


class GraphConsistencyError(SpectralError):
    """Raised when the connection graph cannot be closed into a consistent edge list."""
    pass


class GraphTooLargeError(SpectralError):
    """Raised when a graph exceeds the eigensolver's vertex ceiling."""
    pass


class EigensolverError(SpectralError):
    """Raised when the eigen decomposition does not converge."""
    pass
