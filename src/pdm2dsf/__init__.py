"""
pdm2dsf package initialization.

The CLI entry point is exposed via `pdm2dsf.cli:main`.
"""

__version__ = "0.1.0"

from .cli import main  # noqa: E402

__all__ = ["main", "__version__"]
