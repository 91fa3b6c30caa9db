"""
Business logic for creator-role applications.

A signed-in user applies to become a creator; an admin approves or
rejects the application once.  Approval promotes the applicant through
``UserService.promote_to_creator``.
"""

import logging
from typing import List, Optional

from ..core.errors import InvalidInput, NotFound
from ..repositories.creator_repository import CreatorApplicationRepository
from ..schemas.creator import CreatorApplicationRead
from .user_service import UserService


logger = logging.getLogger(__name__)

DECISIONS = frozenset({"approved", "rejected"})


class CreatorService:
    def __init__(self, applications: CreatorApplicationRepository, users: UserService) -> None:
        self._applications = applications
        self._users = users

    async def apply(self, email: str) -> CreatorApplicationRead:
        """File an application, or return the applicant's open one."""
        pending = self._applications.find_pending(email)
        if pending is not None:
            return pending
        application_id = self._applications.insert(email)
        logger.info("Creator application %s filed by %s", application_id, email)
        return self._applications.get(application_id)

    async def list_applications(self, status: Optional[str] = None) -> List[CreatorApplicationRead]:
        return self._applications.list_applications(status)

    async def decide(self, application_id: int, status: str) -> CreatorApplicationRead:
        if status not in DECISIONS:
            raise InvalidInput("Invalid status", code="InvalidStatus")
        application = self._applications.get(application_id)
        if application is None:
            raise NotFound(f"Application {application_id} not found", code="ApplicationNotFound")
        if not self._applications.decide(application_id, status):
            raise InvalidInput(
                f"Application {application_id} is already {application.status}",
                code="AlreadyDecided",
            )
        if status == "approved":
            await self._users.promote_to_creator(application.email)
        logger.info("Creator application %s %s", application_id, status)
        return self._applications.get(application_id)
