"""
SQLite repositories, one per logical collection.

Repositories hold SQL only: they translate rows to schema objects and
perform single-statement updates.  Business rules (who may do what,
which transitions are legal) live in ``services``.
"""

from .contest_repository import ContestRepository
from .creator_repository import CreatorApplicationRepository
from .payment_repository import PaymentRepository
from .user_repository import UserRepository

__all__ = [
    "ContestRepository",
    "CreatorApplicationRepository",
    "PaymentRepository",
    "UserRepository",
]
