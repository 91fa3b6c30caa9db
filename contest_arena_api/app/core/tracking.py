"""Human-auditable tracking ids: ``PRCL-YYYYMMDD-XXXXXX``."""

import re
import secrets
from datetime import datetime, timezone
from typing import Optional

TRACKING_PREFIX = "PRCL"
TRACKING_ID_PATTERN = re.compile(r"^PRCL-\d{8}-[0-9A-F]{6}$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def utcnow_iso() -> str:
    return utcnow().isoformat()


def generate_tracking_id(now: Optional[datetime] = None) -> str:
    """Build a tracking id from the UTC date and 3 random bytes.

    Uniqueness is not enforced; collisions within one day are accepted
    as negligible.
    """
    now = now or utcnow()
    return f"{TRACKING_PREFIX}-{now.astimezone(timezone.utc):%Y%m%d}-{secrets.token_hex(3).upper()}"
