"""
Business logic for users and roles (the role store).

Registration is idempotent: the first sign-in of an email creates the
user with role ``user`` and every later registration of the same email
is a no-op reported as "already exists".  The configured bootstrap
admin email is created with role ``admin``; that account becomes the
*original admin*, the earliest-created admin, and is the only account
allowed to grant or revoke the admin role.
"""

import logging
from typing import Optional, Tuple

from ..core.errors import Forbidden, InvalidInput, NotFound
from ..core.roles import Role
from ..repositories.user_repository import UserRepository
from ..schemas.user import UserCreate, UserRead


logger = logging.getLogger(__name__)


class UserService:
    """Users, role lookups and guarded role changes."""

    def __init__(self, repository: UserRepository, bootstrap_admin_email: str = "") -> None:
        self._repo = repository
        self._bootstrap_admin_email = bootstrap_admin_email.strip().lower()

    async def register(self, data: UserCreate) -> Tuple[UserRead, bool]:
        """Create the user if the email is new.

        Returns the stored user and whether this call created it.
        """
        role = Role.ADMIN if data.email == self._bootstrap_admin_email else Role.USER
        created = self._repo.insert_if_absent(data.email, data.name, data.photo_url, role)
        user = self._repo.get_by_email(data.email)
        if created:
            logger.info("Registered user %s with role %s", data.email, role.value)
        return user, created

    async def find_by_email(self, email: str) -> Optional[UserRead]:
        return self._repo.get_by_email(email.lower())

    async def get_role(self, email: str) -> Role:
        user = self._repo.get_by_email(email.strip().lower())
        if user is None:
            raise NotFound(f"User {email} not found", code="UserNotFound")
        return user.role

    async def original_admin(self) -> Optional[UserRead]:
        return self._repo.earliest_admin()

    async def change_role(self, user_id: int, new_role: str, requester_email: str) -> UserRead:
        """Change a user's role.

        The caller has already passed the admin guard.  Granting or
        revoking ``admin`` additionally requires the requester to be the
        original admin; when no admin exists at all such changes are
        refused.

        Raises
        ------
        InvalidInput
            ``new_role`` is not a known role.
        NotFound
            No user with ``user_id``.
        Forbidden
            Admin role involved and the requester is not the original admin.
        """
        role = Role.parse(new_role)
        if role is None:
            raise InvalidInput(f"Unknown role {new_role!r}", code="InvalidRole")
        target = self._repo.get_by_id(user_id)
        if target is None:
            raise NotFound(f"User {user_id} not found", code="UserNotFound")

        if Role.ADMIN in (role, target.role):
            founder = self._repo.earliest_admin()
            if founder is None or founder.email != requester_email:
                logger.warning(
                    "Refused admin role change of %s to %s requested by %s",
                    target.email,
                    role.value,
                    requester_email,
                )
                raise Forbidden("Only the original admin may grant or revoke the admin role")

        if target.role != role:
            self._repo.set_role(target.id, role)
            logger.info("User %s role changed from %s to %s by %s", target.email, target.role.value, role.value, requester_email)
        return self._repo.get_by_id(target.id)

    async def promote_to_creator(self, email: str) -> Optional[UserRead]:
        """Side effect of an approved creator application.

        Admins keep their role; an unknown email is left alone (the user
        record is created on first sign-in, before any application).
        """
        user = self._repo.get_by_email(email)
        if user is None:
            logger.warning("Creator approval for unknown user %s", email)
            return None
        if user.role == Role.USER:
            self._repo.set_role(user.id, Role.CREATOR)
            logger.info("User %s promoted to creator", email)
        return self._repo.get_by_email(email)
