"""
Object tracking on top of an external detector, with continuity heuristics.

The external model proposes candidate boxes each frame. This module decides
which one (if any) is the subject: confidence/class filtering, a selection
strategy or a user lock, anti-jump rejection and lost-frame tolerance.
A rejected jump always reports the last accepted box; only frames with no
candidate count towards the lost-frame tolerance.
"""

import logging

from ...utils.geometry import bbox_area, bbox_distance, iou
from ..config import TrackStrategy
from ..errors import CollaboratorError, PreconditionError
from ..runtime_types import ObjectDetectionBackend
from ..types import FrameResult, Point
from .base import Detector

logger = logging.getLogger(__name__)

BOX_SOURCE_AUTO = "auto"
BOX_SOURCE_USER = "user"


def filter_candidates(detections, confidence, target_class=None):
    """Keep detections with score >= confidence and, if given, of ``target_class``."""
    return [
        d
        for d in detections
        if d.score >= confidence and (target_class is None or d.label == target_class)
    ]


def _highest_score(candidates):
    return max(candidates, key=lambda d: d.score)


def select_by_strategy(candidates, strategy, previous_box=None):
    """
    Choose one candidate with the configured strategy.

    ``nearestPrev`` falls back to ``highestScore`` when there is no previous box.
    Ties keep the earliest candidate.
    """
    if not candidates:
        return None
    strategy = TrackStrategy(strategy)

    if strategy == TrackStrategy.HIGHEST_SCORE:
        return _highest_score(candidates)
    if strategy == TrackStrategy.LARGEST:
        return max(candidates, key=lambda d: bbox_area(d.box))
    if previous_box is None:
        return _highest_score(candidates)
    return min(candidates, key=lambda d: bbox_distance(d.box, previous_box))


def select_by_iou(candidates, locked_box):
    """Choose the candidate overlapping the user-locked box the most."""
    if not candidates:
        return None
    return max(candidates, key=lambda d: iou(d.box, locked_box))


class ContinuityObjectDetector(Detector):
    """
    Follows one object class across frames using an external detection model.

    The last accepted box and its source (automatic or user lock) are public
    so that a UI can display and edit the lock.
    """

    name = "ai-object"

    def __init__(self, backend: ObjectDetectionBackend | None = None, config=None):
        super().__init__(config)
        self.backend = backend
        self.last_box = None
        self.box_source = BOX_SOURCE_AUTO
        self.lost_count = 0
        self.latest_detections = []
        self.scanned_classes = set()

    @property
    def is_locked(self):
        return self.box_source == BOX_SOURCE_USER and self.last_box is not None

    def lock_box(self, box):
        """Pin a user-selected box; later frames follow it by IoU."""
        self.last_box = box
        self.box_source = BOX_SOURCE_USER
        self.lost_count = 0
        logger.info(f"User lock set on box {box}")

    def clear_lock(self):
        self.last_box = None
        self.box_source = BOX_SOURCE_AUTO
        self.lost_count = 0

    def check_ready(self, frame_source=None):
        if self.backend is None:
            raise PreconditionError("Object detection model not loaded")
        if not self.config.ai_target_class:
            raise PreconditionError("Please select a target class")

    def reset_run_state(self):
        # A user lock made before the run survives into it.
        if not self.is_locked:
            self.last_box = None
            self.box_source = BOX_SOURCE_AUTO
        self.lost_count = 0
        self.latest_detections = []

    def _run_backend(self, frame):
        try:
            return list(self.backend.detect(frame))
        except Exception as e:
            raise CollaboratorError(f"Object detection failed: {e}") from e

    def scan_classes(self, frame):
        """
        Run the model once and list every class seen above the confidence cutoff.

        Classes accumulate across scans so several frames can be sampled
        before a target class is offered when tracking starts.
        """
        if self.backend is None:
            raise PreconditionError("Object detection model not loaded")
        detections = filter_candidates(self._run_backend(frame), self.config.ai_confidence)
        self.latest_detections = detections
        self.scanned_classes.update(d.label for d in detections)
        return sorted(self.scanned_classes)

    def _carry_over(self, frame_number, timestamp):
        cx, cy = self.last_box.center
        return FrameResult(
            frame_number=frame_number,
            timestamp=timestamp,
            position=Point(cx, cy, timestamp),
            pixel_count=0,
            detection_box=self.last_box,
            detected_class=self.config.ai_target_class,
            detection_score=0.0,
        )

    def _mark_lost(self, frame_number, timestamp):
        """Count a lost frame and report the last box while within tolerance."""
        self.lost_count += 1
        if self.lost_count > self.config.ai_lost_frame_tolerance:
            if self.last_box is not None:
                logger.debug(
                    f"Frame {frame_number}: target lost for {self.lost_count} frames, "
                    "clearing track"
                )
            self.last_box = None
            self.box_source = BOX_SOURCE_AUTO
            return FrameResult.empty(frame_number, timestamp)
        if self.last_box is None:
            return FrameResult.empty(frame_number, timestamp)
        return self._carry_over(frame_number, timestamp)

    def process_frame(self, frame, frame_number, timestamp):
        cfg = self.config
        candidates = filter_candidates(
            self._run_backend(frame), cfg.ai_confidence, cfg.ai_target_class
        )
        self.latest_detections = candidates

        if self.is_locked:
            selected = select_by_iou(candidates, self.last_box)
        else:
            selected = select_by_strategy(candidates, cfg.ai_track_strategy, self.last_box)

        if selected is None:
            return self._mark_lost(frame_number, timestamp)

        if self.last_box is not None and cfg.ai_max_jump_px > 0:
            jump = bbox_distance(selected.box, self.last_box)
            if jump > cfg.ai_max_jump_px:
                logger.debug(
                    f"Frame {frame_number}: rejected jump of {jump:.1f}px "
                    f"(max {cfg.ai_max_jump_px:.1f}px)"
                )
                # The last box stays; tolerance applies to empty frames only.
                return self._carry_over(frame_number, timestamp)

        self.last_box = selected.box
        self.lost_count = 0

        cx, cy = selected.box.center
        return FrameResult(
            frame_number=frame_number,
            timestamp=timestamp,
            position=Point(cx, cy, timestamp),
            pixel_count=int(round(bbox_area(selected.box))),
            detection_box=selected.box,
            detected_class=selected.label,
            detection_score=float(selected.score),
        )
