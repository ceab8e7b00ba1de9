"""Server-side session state and the impersonation context it carries."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional

USER_ID_KEY = "user_id"
PERMISSIONS_KEY = "permissions"
IMPERSONATION_KEY = "impersonation"


@dataclass(frozen=True, slots=True)
class ImpersonationContext:
    """Restore point recorded while an administrator acts as another user."""

    admin_id: int
    admin_name: str
    target_id: int

    def retarget(self, target_id: int) -> "ImpersonationContext":
        return replace(self, target_id=target_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "admin_id": self.admin_id,
            "admin_name": self.admin_name,
            "target_id": self.target_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImpersonationContext":
        return cls(
            admin_id=int(data["admin_id"]),
            admin_name=str(data["admin_name"]),
            target_id=int(data["target_id"]),
        )


@dataclass(slots=True)
class Session:
    """
    Key/value state attached to one browser session.

    The impersonation context lives under a single key so that it is always
    written and removed as a whole.
    """

    id: str
    data: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value

    def forget(self, key: str) -> None:
        self.data.pop(key, None)

    # Identity ---------------------------------------------------------------
    @property
    def user_id(self) -> Optional[int]:
        value = self.data.get(USER_ID_KEY)
        return int(value) if value is not None else None

    @property
    def permissions(self) -> List[str]:
        return list(self.data.get(PERMISSIONS_KEY) or [])

    # Impersonation ----------------------------------------------------------
    @property
    def impersonation(self) -> Optional[ImpersonationContext]:
        raw = self.data.get(IMPERSONATION_KEY)
        if not raw:
            return None
        return ImpersonationContext.from_dict(raw)

    @property
    def is_impersonating(self) -> bool:
        return self.impersonation is not None

    def begin_impersonation(self, context: ImpersonationContext) -> None:
        self.data[IMPERSONATION_KEY] = context.to_dict()

    def end_impersonation(self) -> Optional[ImpersonationContext]:
        context = self.impersonation
        self.forget(IMPERSONATION_KEY)
        return context
