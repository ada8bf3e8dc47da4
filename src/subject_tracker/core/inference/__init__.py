"""
Adapters wrapping optional deep-learning libraries as tracking backends.

Importing this package does not import torch, timm or ultralytics; each
adapter loads its library when it is constructed.
"""

from .device import resolve_device
from .timm_embedder import TimmEmbeddingBackend
from .ultralytics_detector import UltralyticsObjectDetector

__all__ = ["resolve_device", "TimmEmbeddingBackend", "UltralyticsObjectDetector"]
