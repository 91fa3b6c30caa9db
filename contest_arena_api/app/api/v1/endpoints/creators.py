"""
Creator application endpoints for API v1.

Any signed-in user may apply to become a creator.  Admins list the
applications and approve or reject each one; approval grants the
creator role.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from contest_arena_api.app.core.container import Container, get_container
from contest_arena_api.app.core.security import get_current_user, require_admin
from contest_arena_api.app.schemas.creator import CreatorApplicationRead, CreatorDecision


router = APIRouter()


@router.post("", response_model=CreatorApplicationRead, status_code=status.HTTP_201_CREATED)
async def apply_for_creator(
    current_user: dict = Depends(get_current_user),
    container: Container = Depends(get_container),
) -> CreatorApplicationRead:
    """Apply for the creator role.  An open application is returned as is."""
    return await container.creators.apply(current_user["sub"])


@router.get("", response_model=List[CreatorApplicationRead])
async def list_creator_applications(
    status_filter: Optional[str] = Query(None, alias="status"),
    current_user: dict = Depends(require_admin),
    container: Container = Depends(get_container),
) -> List[CreatorApplicationRead]:
    return await container.creators.list_applications(status_filter)


@router.patch("/{application_id}", response_model=CreatorApplicationRead)
async def decide_creator_application(
    application_id: int,
    body: CreatorDecision,
    current_user: dict = Depends(require_admin),
    container: Container = Depends(get_container),
) -> CreatorApplicationRead:
    """Approve or reject an application (admin only, once per application)."""
    return await container.creators.decide(application_id, body.status)
