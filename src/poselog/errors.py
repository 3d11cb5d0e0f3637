# src/poselog/errors.py
class PoseLogError(Exception):
    """Base class for poselog errors."""


class EmptyDatasetError(PoseLogError):
    """Raised when exporting a logging session that holds no frames."""


class SchemaMismatchError(PoseLogError):
    """A logged frame's columns differ from the first frame of its session."""


class UnknownKeypointError(PoseLogError, KeyError):
    """A joint role names a keypoint the detector model does not declare."""


class UnknownModelError(PoseLogError, KeyError):
    pass


class BackendLoadError(PoseLogError, RuntimeError):
    pass


class LoggingActiveError(PoseLogError):
    """Operation refused because a logging session is running."""
