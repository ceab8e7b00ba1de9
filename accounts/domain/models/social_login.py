from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(slots=True)
class SocialLogin:
    """Link between a user and the id a social provider assigned to them."""

    id: int
    user_id: int
    provider: str
    provider_id: str
    created_at: datetime


@dataclass(frozen=True, slots=True)
class SocialProfile:
    """Profile data returned by a social provider after a successful OAuth exchange."""

    id: str
    email: Optional[str] = None
    name: Optional[str] = None

    def lookup_email(self, provider: str) -> str:
        # Providers may withhold the address; fall back to a stable placeholder.
        if self.email:
            return self.email.strip().lower()
        return f"{self.id}@{provider}.com".lower()
