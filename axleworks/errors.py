"""
Error taxonomy for the document services.

Services raise these instead of bare HTTPException so every rejection carries
a machine-readable kind. They still subclass HTTPException, so FastAPI renders
them even without the handler registered in main.py.
"""

from typing import Optional

from fastapi import HTTPException


class AppError(HTTPException):
    status_code = 500
    kind = "internal_error"

    def __init__(self, message: str):
        super().__init__(status_code=self.status_code, detail=message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}


class NotFoundError(AppError):
    """Referenced document is absent"""

    status_code = 404
    kind = "not_found"


class BadRequestError(AppError):
    """Invalid state transition, invalid slot or invalid adjustment"""

    status_code = 400
    kind = "bad_request"


class InvalidTransitionError(BadRequestError):
    """A status change that the document's transition table does not allow"""

    kind = "invalid_transition"

    def __init__(
        self,
        document: str,
        current_state: str,
        target_state: str,
        message: Optional[str] = None,
    ):
        super().__init__(
            message or f"Cannot transition {document} from {current_state} to {target_state}"
        )
        self.document = document
        self.current_state = current_state
        self.target_state = target_state

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["current_state"] = self.current_state
        data["target_state"] = self.target_state
        return data


class ConflictError(AppError):
    """Duplicate conversion, overlapping write or duplicate natural key"""

    status_code = 409
    kind = "conflict"
