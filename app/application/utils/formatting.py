from __future__ import annotations

import math
import re
from typing import Any

from app.domain.entities.booking import UNKNOWN_CLIENT


def derive_reference(record_id: Any) -> str:
    """Fallback booking reference built from the last 6 characters of the record id."""
    return f"BK-{str(record_id)[-6:]}"


def client_display_name(client: dict[str, Any] | None) -> str:
    if not client:
        return UNKNOWN_CLIENT
    name = f"{client.get('firstName') or ''} {client.get('lastName') or ''}".strip()
    return name or UNKNOWN_CLIENT


def humanize_duration(minutes: int | float | None) -> str:
    """90 -> '1 hour 30 minutes', 60 -> '1 hour', 45 -> '45 minutes'."""
    total = int(minutes or 0)
    hours, mins = divmod(total, 60)
    parts: list[str] = []
    if hours:
        parts.append(f"{hours} hour" + ("s" if hours != 1 else ""))
    if mins or not hours:
        parts.append(f"{mins} minute" + ("s" if mins != 1 else ""))
    return " ".join(parts)


def format_price(price: int | float | None, symbol: str = "£") -> str:
    amount = float(price or 0)
    if amount.is_integer():
        return f"{symbol}{int(amount)}"
    return f"{symbol}{amount:.2f}"


def round_half_up(value: float, ndigits: int = 0) -> float:
    factor = 10**ndigits
    return math.floor(value * factor + 0.5) / factor


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "service"
