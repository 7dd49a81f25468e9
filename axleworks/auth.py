"""
Actor resolution.

Authentication happens upstream (API gateway / identity service); by the time a
request reaches this service the gateway has verified the session and forwards
the authenticated actor in trusted headers.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Header, HTTPException

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    id: int


async def get_current_actor(
    x_actor_id: Optional[str] = Header(None),
) -> Actor:
    """Return the actor forwarded by the gateway, 401 when absent or malformed"""
    if not x_actor_id:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        actor_id = int(x_actor_id)
    except ValueError:
        logger.warning(f"⚠️ Malformed actor id header: {x_actor_id!r}")
        raise HTTPException(status_code=401, detail="Invalid actor identity") from None

    return Actor(id=actor_id)
