from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Actor:
    """Who performs a mutation, plus where the request came from.

    Threaded explicitly into every engine call; the auth layer that derives
    it lives outside this package.
    """

    actor_id: Optional[int]
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


SYSTEM_ACTOR = Actor(actor_id=None, user_agent="attendance-scheduler")
