"""Tracking run control."""

from .session import SessionState, TrackingSession

__all__ = ["SessionState", "TrackingSession"]
