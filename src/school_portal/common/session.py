from __future__ import annotations

from flask import session

from ..core.context import Recipient, UserContext
from ..core.enums import Role


def current_context() -> UserContext:
    """Identity placed in the Flask session by the login flow."""
    recipients = tuple(
        Recipient(id=str(r["id"]), name=str(r.get("name") or r["id"]), role=Role(r["role"]))
        for r in session.get("recipients", [])
    )
    return UserContext(
        user_id=str(session["user_id"]),
        name=str(session.get("name") or ""),
        role=Role(session["role"]),
        recipients=recipients,
    )
