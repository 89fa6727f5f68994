"""
Exception taxonomy for the mood pipeline.

- CapabilityError: camera / landmark model problems; fatal to the current
  session and surfaced to the user.
- FrameError: a single frame could not be classified; the frame is skipped.
- PersistenceError: the stored history could not be read or written;
  recovered locally.
"""


class MoodError(Exception):
    """Base class for all pipeline errors."""


class CapabilityError(MoodError):
    """The external vision capability is unusable for this session."""


class CapabilityAcquisitionError(CapabilityError):
    """Camera access denied or landmark model failed to load."""


class CapabilityLostError(CapabilityError):
    """The provider failed after a successful acquisition."""


class FrameError(MoodError):
    """Per-frame, non-fatal classification failure."""


class MissingLandmarksError(FrameError):
    pass


class DegenerateGeometryError(FrameError):
    pass


class PersistenceError(MoodError):
    pass


class InvalidTransitionError(MoodError):
    def __init__(self, current, requested):
        super().__init__(f"cannot go from {current} to {requested}")
        self.current = current
        self.requested = requested
