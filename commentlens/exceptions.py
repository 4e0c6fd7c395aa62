"""
Exceptions raised by the comment analysis pipeline.
"""


class CommentLensError(Exception):
    """Base exception for the package"""

    def __init__(self, message: str = "comment analysis failed"):
        self.message = message
        super().__init__(self.message)


class ConfigurationError(CommentLensError):
    """Missing credential or capability, raised before any request is made"""

    def __init__(self, message: str = "configuration error"):
        super().__init__(message)


class ModelRequestError(CommentLensError):
    """The model service rejected the request or returned nothing usable"""

    def __init__(self, message: str = "model request failed", status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class ExtractionError(CommentLensError):
    """Comment extraction failed for one image; fatal for the post run"""

    def __init__(self, image_name: str, cause: Exception | None = None):
        self.image_name = image_name
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"failed to extract comments from {image_name}{detail}")


class ClassificationError(CommentLensError):
    """The classifier response for one comment could not be decoded"""

    def __init__(self, message: str = "could not decode classification response"):
        super().__init__(message)


class AnalysisCancelled(CommentLensError):
    """The cancellation signal was observed between pipeline steps"""

    def __init__(self, message: str = "analysis cancelled"):
        super().__init__(message)


class StoreError(CommentLensError):
    """Persistence failure"""

    def __init__(self, message: str = "storage error"):
        super().__init__(message)
