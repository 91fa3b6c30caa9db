"""
User endpoints for API v1.

Registration happens on first sign-in and is idempotent.  Role lookup
is public so the web client can pick a dashboard; role changes are
admin-only, and changes involving the admin role are reserved for the
original admin.
"""

from fastapi import APIRouter, Depends, Response, status

from contest_arena_api.app.core.container import Container, get_container
from contest_arena_api.app.core.security import require_admin
from contest_arena_api.app.schemas.user import RegistrationResult, RoleRead, RoleUpdate, UserCreate, UserRead


router = APIRouter()


@router.post("", response_model=RegistrationResult, status_code=status.HTTP_201_CREATED)
async def register_user(
    user: UserCreate,
    response: Response,
    container: Container = Depends(get_container),
) -> RegistrationResult:
    """Register a user on first sign-in.

    Returns 201 when the user is created.  A second registration of the
    same email changes nothing and returns 200 with
    ``"user already exists"``.
    """
    stored, created = await container.users.register(user)
    if not created:
        response.status_code = status.HTTP_200_OK
        return RegistrationResult(message="user already exists", created=False, user=stored)
    return RegistrationResult(message="user created", created=True, user=stored)


@router.get("/{email}/role", response_model=RoleRead)
async def get_user_role(email: str, container: Container = Depends(get_container)) -> RoleRead:
    """Return the role of the user with ``email`` (404 if unknown)."""
    role = await container.users.get_role(email)
    return RoleRead(email=email.strip().lower(), role=role)


@router.patch("/{user_id}/role", response_model=UserRead)
async def change_user_role(
    user_id: int,
    body: RoleUpdate,
    current_user: dict = Depends(require_admin),
    container: Container = Depends(get_container),
) -> UserRead:
    """Change a user's role.

    Admins may move users between ``user`` and ``creator``.  Granting
    or revoking ``admin`` is allowed to the original admin only (403
    for everyone else).
    """
    return await container.users.change_role(user_id, body.role, current_user["sub"])
