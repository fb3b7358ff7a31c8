"""API routers for the groupware service."""

from . import approvals
from . import notifications
from . import health

__all__ = [
    "approvals",
    "notifications",
    "health",
]
