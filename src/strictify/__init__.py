"""strictify package root."""

from strictify.exceptions import (
    ConfigError,
    CorrelationMismatchError,
    NeverThrown,
    ProjectNotCompilingError,
    StrictifyError,
)
from strictify.invariants import never

__all__ = [
    "__version__",
    "ConfigError",
    "CorrelationMismatchError",
    "NeverThrown",
    "ProjectNotCompilingError",
    "StrictifyError",
    "never",
]

__version__ = "0.1.0"
