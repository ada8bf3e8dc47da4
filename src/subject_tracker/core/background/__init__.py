"""Reference background capture for background subtraction."""

from .model import BackgroundModel

__all__ = ["BackgroundModel"]
