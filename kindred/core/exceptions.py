"""
Error taxonomy for discovery and matching.

``QuotaExceeded`` is an expected, user-facing condition. ``TransientStoreError``
means the operation failed talking to the database and may be retried.
"""
from datetime import datetime
from typing import Optional


class KindredError(Exception):
    """Base class for all application errors."""


class NotFound(KindredError):
    """Referenced profile does not exist or is not discoverable."""

    def __init__(self, user_id: str, detail: Optional[str] = None):
        self.user_id = user_id
        super().__init__(detail or f"Profile {user_id} not found")


class QuotaExceeded(KindredError):
    """The viewer used up their likes for the current window."""

    def __init__(self, reset_at: datetime, limit: int):
        self.reset_at = reset_at
        self.limit = limit
        super().__init__(
            f"Like limit of {limit} reached, try again after "
            f"{reset_at.strftime('%Y-%m-%d %H:%M')} UTC"
        )


class TransientStoreError(KindredError):
    """Timeout or connectivity failure while talking to the store."""


class InvalidAction(KindredError, ValueError):
    """The requested action is not allowed for this pair of users."""
