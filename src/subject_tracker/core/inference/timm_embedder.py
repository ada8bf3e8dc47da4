"""
Patch embedding backend using a pretrained TIMM model.
"""

import logging

import cv2
import numpy as np

from .device import resolve_device

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "mobilenetv3_small_100"


class TimmEmbeddingBackend:
    """
    L2-normalised feature vectors from a TIMM backbone with its head removed.

    The model loads lazily on the first ``embed`` call (or ``warmup``).
    """

    def __init__(self, model_name=DEFAULT_MODEL, device="auto", pretrained=True):
        try:
            import timm
            import torch
            from PIL import Image

            self._timm = timm
            self._torch = torch
            self._Image = Image
        except ImportError as e:
            raise ImportError(
                "timm, torch, and PIL are required for TimmEmbeddingBackend"
            ) from e

        self.model_name = model_name
        self.pretrained = pretrained
        self._device = resolve_device(device)
        self._model = None
        self._transform = None
        self._dimension = None
        logger.info(f"TIMM embedding backend will use device: {self._device}")

    @property
    def output_dimension(self):
        if self._dimension is None:
            self.warmup()
        return self._dimension

    def warmup(self):
        """Load the model and its preprocessing transform."""
        if self._model is not None:
            return

        logger.info(f"Loading TIMM model: {self.model_name}")
        model = self._timm.create_model(
            self.model_name, pretrained=self.pretrained, num_classes=0
        )
        self._model = model.eval().to(self._device)

        data_config = self._timm.data.resolve_model_data_config(self._model)
        self._transform = self._timm.data.create_transform(**data_config)

        with self._torch.no_grad():
            dummy = self._torch.randn(1, 3, 224, 224).to(self._device)
            self._dimension = int(self._model(dummy).shape[1])
        logger.info(f"TIMM model loaded. Embedding dimension: {self._dimension}")

    def embed(self, patch: np.ndarray) -> np.ndarray:
        if patch is None or patch.size == 0:
            raise ValueError("Empty patch")
        self.warmup()

        rgb = cv2.cvtColor(patch, cv2.COLOR_BGR2RGB)
        tensor = self._transform(self._Image.fromarray(rgb)).unsqueeze(0).to(self._device)
        with self._torch.no_grad():
            features = self._model(tensor).cpu().numpy()[0].astype(np.float32)

        norm = np.linalg.norm(features)
        if norm > 0:
            features = features / norm
        return features
