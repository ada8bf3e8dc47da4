"""
Exception hierarchy for tracking runs.

A frame with nothing detected is never an exception; it is reported as a
FrameResult without a position.
"""


class TrackingError(Exception):
    """Base class for all tracking failures."""


class PreconditionError(TrackingError):
    """A detector is not ready to start (no background, untrained classifier, ...)."""


class CollaboratorError(TrackingError):
    """An external collaborator (frame source, model) failed during a run."""


class FrameFetchError(CollaboratorError):
    """The frame source could not deliver a frame."""


class BackgroundCaptureError(TrackingError):
    """Background capture did not complete; no background was cached."""


class InvalidSessionStateError(TrackingError):
    """The requested session transition is not allowed from the current state."""


class ConfigError(TrackingError, ValueError):
    """Invalid configuration value."""
