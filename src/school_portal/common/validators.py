from __future__ import annotations

from typing import Optional


def is_blank(value: Optional[str]) -> bool:
    return not value or not value.strip()
