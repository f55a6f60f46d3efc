"""Error taxonomy for the diarization and rendering pipeline."""


class PodcastAnimatorError(Exception):
    """Base class for all pipeline errors."""


class InvalidInput(PodcastAnimatorError, ValueError):
    """Buffer is empty, has the wrong channel count, or has zero length."""


class DecodeFailure(PodcastAnimatorError):
    """Uploaded media could not be decoded into a sample buffer."""


class AvatarUnavailable(PodcastAnimatorError):
    """Avatar image could not be resolved or loaded. Always absorbed locally."""


class ExportFailure(PodcastAnimatorError):
    """The export artifact could not be materialized."""
