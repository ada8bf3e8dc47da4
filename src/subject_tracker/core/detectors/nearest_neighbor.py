"""
User-trained nearest-neighbor detector.

The user clicks on the subject ("target") and on things that are not the
subject ("background"). Each click becomes a patch embedding in a k-NN
classifier. During tracking, windows around the last known position are
classified and the most confident target window wins.
"""

import logging

import numpy as np
from sklearn.neighbors import KNeighborsClassifier

from ...utils.image_processing import extract_patch
from ..errors import CollaboratorError, PreconditionError
from ..runtime_types import EmbeddingBackend
from ..types import BoundingBox, FrameResult, Point
from .base import Detector

logger = logging.getLogger(__name__)

TARGET = "target"
BACKGROUND = "background"
LABELS = (TARGET, BACKGROUND)


class NearestNeighborClassifier:
    """
    Online k-NN classifier over embedding vectors.

    Examples can be added one at a time; the underlying scikit-learn model is
    refit lazily on the next prediction. Confidence for a label is the share
    of the k nearest neighbors (cosine distance) that carry it.
    """

    def __init__(self, k=3):
        self.k = k
        self._embeddings = []
        self._labels = []
        self._model = None

    def __len__(self):
        return len(self._labels)

    def add_example(self, embedding, label):
        if label not in LABELS:
            raise ValueError(f"Unknown label {label!r}; expected one of {LABELS}")
        vector = np.asarray(embedding, dtype=np.float32).ravel()
        if self._embeddings and vector.shape != self._embeddings[0].shape:
            raise ValueError(
                f"Embedding size {vector.shape[0]} does not match "
                f"{self._embeddings[0].shape[0]}"
            )
        self._embeddings.append(vector)
        self._labels.append(label)
        self._model = None

    def set_k(self, k):
        if k != self.k:
            self.k = k
            self._model = None

    def count(self, label):
        return sum(1 for lbl in self._labels if lbl == label)

    def clear(self):
        self._embeddings = []
        self._labels = []
        self._model = None

    def _fit(self):
        k = min(self.k, len(self._labels))
        model = KNeighborsClassifier(n_neighbors=k, metric="cosine", algorithm="brute")
        model.fit(np.stack(self._embeddings), np.asarray(self._labels))
        self._model = model

    def predict(self, embeddings):
        """
        Classify a batch of embeddings.

        Returns:
            list[tuple]: (label, confidence) per row
        """
        if not self._labels:
            raise RuntimeError("Classifier has no training examples")
        if self._model is None:
            self._fit()
        X = np.atleast_2d(np.asarray(embeddings, dtype=np.float32))
        proba = self._model.predict_proba(X)
        classes = list(self._model.classes_)
        best = np.argmax(proba, axis=1)
        return [(classes[j], float(proba[i, j])) for i, j in enumerate(best)]


def window_centers(anchor, radius, window_size, frame_width, frame_height):
    """
    Centers of the search windows around ``anchor``.

    Windows overlap by half their size and never extend past the frame.
    """
    step = max(1, window_size // 2)
    half = window_size / 2.0
    ax, ay = anchor
    min_x = max(half, ax - radius)
    max_x = min(frame_width - half, ax + radius)
    min_y = max(half, ay - radius)
    max_y = min(frame_height - half, ay + radius)
    if min_x > max_x or min_y > max_y:
        return []
    xs = np.arange(min_x, max_x + 1e-9, step)
    ys = np.arange(min_y, max_y + 1e-9, step)
    return [(float(x), float(y)) for y in ys for x in xs]


class TrainedNearestNeighborDetector(Detector):
    """Sliding-window search with a classifier trained from user clicks."""

    name = "knn-custom"

    def __init__(self, embedder: EmbeddingBackend | None = None, config=None, classifier=None):
        super().__init__(config)
        self.embedder = embedder
        self.classifier = classifier or NearestNeighborClassifier(self.config.knn_neighbors)
        self.last_position = None

    @property
    def target_samples(self):
        return self.classifier.count(TARGET)

    @property
    def background_samples(self):
        return self.classifier.count(BACKGROUND)

    @property
    def is_trained(self):
        needed = self.config.knn_min_samples_per_class
        return self.target_samples >= needed and self.background_samples >= needed

    def _embed(self, patch):
        try:
            return np.asarray(self.embedder.embed(patch), dtype=np.float32).ravel()
        except Exception as e:
            raise CollaboratorError(f"Feature embedding failed: {e}") from e

    def add_training_sample(self, frame, x, y, label):
        """Embed the patch around (x, y) and add it as an example of ``label``."""
        if self.embedder is None:
            raise PreconditionError("Feature embedding model not loaded")
        patch = extract_patch(frame, x, y, self.config.knn_window_size)
        self.classifier.add_example(self._embed(patch), label)
        logger.info(
            f"Added {label} sample at ({x:.0f}, {y:.0f}); "
            f"target={self.target_samples}, background={self.background_samples}"
        )

    def clear_training(self):
        self.classifier.clear()
        self.last_position = None

    def check_ready(self, frame_source=None):
        if self.embedder is None:
            raise PreconditionError("Feature embedding model not loaded")
        if not self.is_trained:
            needed = self.config.knn_min_samples_per_class
            raise PreconditionError(
                f"Classifier not trained: need {needed} target and {needed} background "
                f"samples (have {self.target_samples} and {self.background_samples})"
            )

    def reset_run_state(self):
        self.classifier.set_k(self.config.knn_neighbors)
        self.last_position = None

    def process_frame(self, frame, frame_number, timestamp):
        cfg = self.config
        h, w = frame.shape[:2]
        anchor = self.last_position or (w / 2.0, h / 2.0)
        centers = window_centers(anchor, cfg.knn_search_radius, cfg.knn_window_size, w, h)
        if not centers:
            return FrameResult.empty(frame_number, timestamp)

        embeddings = [
            self._embed(extract_patch(frame, x, y, cfg.knn_window_size)) for x, y in centers
        ]
        predictions = self.classifier.predict(np.stack(embeddings))

        best, best_conf = None, -1.0
        for center, (label, conf) in zip(centers, predictions):
            if label == TARGET and conf >= cfg.knn_confidence and conf > best_conf:
                best, best_conf = center, conf

        if best is None:
            return FrameResult.empty(frame_number, timestamp)

        self.last_position = best
        size = cfg.knn_window_size
        box = BoundingBox(best[0] - size / 2.0, best[1] - size / 2.0, size, size)
        return FrameResult(
            frame_number=frame_number,
            timestamp=timestamp,
            position=Point(best[0], best[1], timestamp),
            pixel_count=size * size,
            detection_box=box,
            detected_class="custom-target",
            detection_score=best_conf,
        )
