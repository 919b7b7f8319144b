"""
Medici - course question data sync

Course files on disk are the single source of truth. Medici keeps them
canonical and pushes only the entities that changed to the remote store.
"""

__version__ = "1.0.0"
__license__ = "MIT"

from .errors import (
    MediciError,
    ConfigurationError,
    ValidationError,
    LoadError,
    SnapshotError,
    TransportError,
)

__all__ = [
    "__version__",
    "MediciError",
    "ConfigurationError",
    "ValidationError",
    "LoadError",
    "SnapshotError",
    "TransportError",
]
