from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from .enums import Role


@dataclass(frozen=True)
class Recipient:
    """An addressable correspondent offered by the compose form."""

    id: str
    name: str
    role: Role


@dataclass(frozen=True)
class UserContext:
    """Identity of the signed-in user, passed explicitly into every call.

    Produced by the login flow; the portal never reads identity from globals.
    """

    user_id: str
    name: str
    role: Role
    recipients: Tuple[Recipient, ...] = field(default_factory=tuple)

    def find_recipient(self, recipient_id: str) -> Optional[Recipient]:
        for r in self.recipients:
            if r.id == recipient_id:
                return r
        return None

    def display_name_for(self, user_id: str) -> str:
        r = self.find_recipient(user_id)
        return r.name if r else user_id
