from __future__ import annotations

from typing import Protocol

from ..models import User


class ConfirmationNotifier(Protocol):
    """Delivers email confirmation tokens to account owners."""

    def send_confirmation(self, user: User, token: str) -> bool:
        ...
