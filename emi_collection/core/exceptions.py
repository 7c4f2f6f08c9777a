"""
Error taxonomy for the EMI collection service.

Every error carries:
- An internal message (logged, never returned)
- A user message (safe to return in the ``message`` field)
- The HTTP status the API layer should answer with
"""
from typing import Any, Dict, Optional


class EMICollectionError(Exception):
    """Base exception for all service errors."""

    http_status = 500
    default_user_message = "Something went wrong!"

    def __init__(self, message: str, user_message: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.user_message = user_message or self.default_user_message

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON body returned to callers."""
        return {"success": False, "message": self.user_message}


class ValidationError(EMICollectionError):
    """
    Malformed, missing or non-positive input.

    Raised before any store access; the caller's fault.
    """

    http_status = 400

    def __init__(self, message: str) -> None:
        super().__init__(message, user_message=message)


class NotFoundError(EMICollectionError):
    """A referenced customer account does not exist."""

    http_status = 404

    def __init__(self, message: str, account_number: Optional[str] = None) -> None:
        super().__init__(message, user_message=message)
        self.account_number = account_number


class StoreError(EMICollectionError):
    """
    Connection, query or transaction failure.

    The transaction (if any) has been rolled back by the time this is raised.
    Detail stays in ``message``; callers only see ``user_message``.
    """

    http_status = 500
