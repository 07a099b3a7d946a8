"""
Exception taxonomy for ClipForge.

DecodeError and EncodeError always reach the caller. TransformFailure is
raised only in strict mode; best-effort call sites log it and keep the
input buffer.
"""


class ClipForgeError(Exception):
    """Base class for engine errors."""


class DecodeError(ClipForgeError):
    """Input bytes are not a readable audio container."""


class EncodeError(ClipForgeError):
    """Buffer cannot be written to the canonical container."""


class TransformFailure(ClipForgeError):
    """An effect raised while processing a buffer."""

    def __init__(self, effect: str, cause: BaseException | None = None):
        self.effect = effect
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Effect '{effect}' failed{detail}")


class PipelineCancelled(ClipForgeError):
    """A cancellation token was set between pipeline stages."""

    def __init__(self, completed: int, total: int):
        self.completed = completed
        self.total = total
        super().__init__(f"Pipeline cancelled after {completed}/{total} stages")
