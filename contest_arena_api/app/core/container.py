"""
Process-level wiring of storage, gateway, verifier and services.

``build_container`` creates every long-lived collaborator exactly once
and returns them in a ``Container``.  ``create_app`` stores the
container on ``app.state`` and routes reach it through the
``get_container`` dependency, so components receive their
collaborators explicitly instead of importing module-level clients.
Tests pass their own verifier and gateway.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from ..repositories import (
    ContestRepository,
    CreatorApplicationRepository,
    PaymentRepository,
    UserRepository,
)
from ..services.contest_service import ContestService
from ..services.creator_service import CreatorService
from ..services.gateway import PaymentGateway, StripeGateway
from ..services.payment_service import PaymentService
from ..services.user_service import UserService
from .config import Settings
from .db import Database
from .security import IdentityVerifier, build_verifier


@dataclass
class Container:
    settings: Settings
    database: Database
    verifier: IdentityVerifier
    gateway: PaymentGateway
    users: UserService
    contests: ContestService
    payments: PaymentService
    creators: CreatorService


def build_container(
    settings: Settings,
    verifier: Optional[IdentityVerifier] = None,
    gateway: Optional[PaymentGateway] = None,
) -> Container:
    database = Database(settings.database_url)
    verifier = verifier or build_verifier(settings)
    gateway = gateway or StripeGateway(settings.stripe_secret_key, settings.stripe_webhook_secret)

    user_repo = UserRepository(database)
    contest_repo = ContestRepository(database)
    payment_repo = PaymentRepository(database)

    users = UserService(user_repo, bootstrap_admin_email=settings.bootstrap_admin_email)
    return Container(
        settings=settings,
        database=database,
        verifier=verifier,
        gateway=gateway,
        users=users,
        contests=ContestService(contest_repo, payment_repo),
        payments=PaymentService(
            payment_repo,
            contest_repo,
            user_repo,
            gateway,
            site_domain=settings.site_domain,
            currency=settings.currency,
        ),
        creators=CreatorService(CreatorApplicationRepository(database), users),
    )


def get_container(request: Request) -> Container:
    """FastAPI dependency returning the container of the running app."""
    return request.app.state.container
