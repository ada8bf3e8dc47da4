"""
Object-detection backend built on an Ultralytics YOLO model.
"""

import logging
from typing import List

import numpy as np

from ..types import BoundingBox, Detection
from .device import resolve_device

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "yolov8n.pt"


class UltralyticsObjectDetector:
    """
    Axis-aligned detections from a YOLO model, labelled with class names.

    Args:
        model_path (str): Weights file or pretrained model name
        device (str): "auto", "cpu", "cuda:0", "mps", ...
        min_confidence (float): Candidates below this score are not returned.
            Keep it low; the tracker applies its own confidence filter.
    """

    def __init__(self, model_path=DEFAULT_MODEL, device="auto", min_confidence=0.05):
        try:
            from ultralytics import YOLO
        except ImportError as e:
            raise ImportError(
                "ultralytics package required for AI object detection. "
                "Install with: pip install ultralytics"
            ) from e

        self.model_path = str(model_path)
        self.device = resolve_device(device)
        self.min_confidence = float(min_confidence)

        try:
            self.model = YOLO(self.model_path)
            self.model.to(self.device)
        except Exception as e:
            logger.error(f"Failed to load YOLO model '{self.model_path}': {e}")
            raise
        logger.info(f"YOLO model loaded successfully: {self.model_path} on device: {self.device}")

    @property
    def class_names(self):
        names = self.model.names
        if isinstance(names, dict):
            return [names[k] for k in sorted(names)]
        return list(names)

    def _label(self, class_id):
        names = self.model.names
        try:
            return str(names[class_id])
        except (KeyError, IndexError):
            return str(class_id)

    def detect(self, frame: np.ndarray) -> List[Detection]:
        results = self.model.predict(
            frame, conf=self.min_confidence, device=self.device, verbose=False
        )
        detections = []
        for result in results:
            boxes = result.boxes
            if boxes is None or len(boxes) == 0:
                continue
            xyxy = boxes.xyxy.cpu().numpy()
            scores = boxes.conf.cpu().numpy()
            classes = boxes.cls.cpu().numpy().astype(int)
            for (x1, y1, x2, y2), score, cls in zip(xyxy, scores, classes):
                box = BoundingBox(
                    float(x1), float(y1), float(x2 - x1), float(y2 - y1)
                )
                detections.append(Detection(box, float(score), self._label(cls)))
        return detections
