"""Application-specific exceptions for consistent error handling."""

from typing import Any


class AppError(Exception):
    """Application error with standardized error code."""

    def __init__(
        self,
        code: str,
        message: str,
        details: dict[str, Any] | list[Any] | None = None,
    ):
        """Initialize application error."""
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Error envelope for the calling service's error layer."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(AppError):
    """Requested entity does not exist."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(code="NOT_FOUND", message=message, details=details)


class QuestionNotFoundError(NotFoundError):
    """Question id unknown to the question store."""

    def __init__(self, question_id: Any):
        super().__init__(
            message=f"Question {question_id} not found",
            details={"question_id": str(question_id)},
        )
        self.question_id = question_id