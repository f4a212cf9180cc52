"""Error taxonomy for the try-on engine.

Every error carries an HTTP status and a stable ``code`` so the API layer can
render it without inspecting the class, and the metrics recorder can tally
failures by category.
"""

from typing import Any


class TryOnError(Exception):
    """Base class for all engine errors."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if code is not None:
            self.code = code

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": self.message,
            "code": self.code,
            "details": self.details,
        }


class InvalidRequest(TryOnError):
    """Missing image, missing user id or unknown garment category."""
    status_code = 400
    code = "INVALID_REQUEST"


class InvalidImageFormat(TryOnError):
    """Payload is not a decodable image."""
    status_code = 400
    code = "INVALID_IMAGE_FORMAT"

    def __init__(self, message: str = "Invalid image format. Please provide a valid base64 encoded image.", **kwargs):
        super().__init__(message, **kwargs)


class NoBodyDetected(TryOnError):
    """Inference ran but found no usable landmarks."""
    status_code = 422
    code = "NO_BODY_DETECTED"

    def __init__(
        self,
        message: str = (
            "No body detected in the image. Please retake the photo "
            "with a clear view of the person."
        ),
        **kwargs,
    ):
        super().__init__(message, **kwargs)


class EngineNotReady(TryOnError):
    """Engine invoked before initialization completed."""
    status_code = 503
    code = "ENGINE_NOT_READY"

    def __init__(self, message: str = "Virtual try-on engine not initialized", **kwargs):
        super().__init__(message, **kwargs)


class ProcessingFailure(TryOnError):
    """Garment processing, compositing or an unexpected stage fault."""
    status_code = 500
    code = "PROCESSING_FAILURE"


class ProcessingTimeout(ProcessingFailure):
    """Request exceeded its wall-clock budget."""
    status_code = 504
    code = "PROCESSING_TIMEOUT"
