"""Attributes derived from stored profile values at render time."""

from __future__ import annotations

import re
import zlib
from datetime import date
from urllib.parse import quote

from staff_directory.models.profile import SocialPlatform

# Indexed by CRC32(department) mod 8; entries and order must stay stable.
DEPARTMENT_PALETTE: tuple[str, ...] = (
    "#3b82f6",
    "#10b981",
    "#f59e0b",
    "#ef4444",
    "#8b5cf6",
    "#ec4899",
    "#06b6d4",
    "#84cc16",
)

START_YEAR_SPAN = 10

_YEAR_MONTH_RE = re.compile(r"^\d{4}-\d{2}$")

_SOCIAL_LABELS: dict[SocialPlatform, str] = {
    SocialPlatform.WHATSAPP: "WhatsApp",
    SocialPlatform.TELEGRAM: "Telegram",
    SocialPlatform.DISCORD: "Discord",
    SocialPlatform.INSTAGRAM: "Instagram",
    SocialPlatform.FACEBOOK: "Facebook",
    SocialPlatform.TWITTER: "Twitter / X",
    SocialPlatform.YOUTUBE: "YouTube",
    SocialPlatform.TIKTOK: "TikTok",
}


def department_color(department: str | None) -> str:
    if not department:
        return ""
    return DEPARTMENT_PALETTE[zlib.crc32(department.encode("utf-8")) % len(DEPARTMENT_PALETTE)]


def parse_start_date(value: str | None) -> date | None:
    if not value:
        return None
    value = value.strip()
    if _YEAR_MONTH_RE.match(value):
        value += "-01"
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def tenure(start_date: str | None, today: date | None = None) -> str:
    start = parse_start_date(start_date)
    if start is None:
        return ""
    today = today or date.today()
    years = today.year - start.year - ((today.month, today.day) < (start.month, start.day))
    return f"{years} yrs" if years >= 1 else "< 1 yr"


def is_new_hire(start_date: str | None, threshold_days: int, today: date | None = None) -> bool:
    if threshold_days <= 0:
        return False
    start = parse_start_date(start_date)
    if start is None:
        return False
    today = today or date.today()
    # Distance in either direction; a start more than threshold days ahead is not a new hire.
    return abs((today - start).days) <= threshold_days


def start_year_floor(today: date | None = None) -> int:
    return (today or date.today()).year - START_YEAR_SPAN


def start_date_from_parts(year: int | str | None, month: int | str | None, today: date | None = None) -> str:
    """``YYYY-MM`` from HR form selects, or ``""`` when out of range."""
    try:
        y = int(year or 0)
        m = int(month or 0)
    except (TypeError, ValueError):
        return ""
    today = today or date.today()
    if start_year_floor(today) <= y <= today.year and 1 <= m <= 12:
        return f"{y:04d}-{m:02d}"
    return ""


def social_link(platform: SocialPlatform, value: str) -> tuple[str | None, str]:
    """(url, label) for a stored handle. Discord has no deep link."""
    value = value.strip()
    handle = quote(value.lstrip("@"), safe="")
    label = _SOCIAL_LABELS[platform]

    if platform is SocialPlatform.WHATSAPP:
        return "https://wa.me/" + re.sub(r"\D", "", value), label
    if platform is SocialPlatform.TELEGRAM:
        return f"https://t.me/{handle}", label
    if platform is SocialPlatform.INSTAGRAM:
        return f"https://instagram.com/{handle}/", label
    if platform is SocialPlatform.TWITTER:
        return f"https://x.com/{handle}", label
    if platform is SocialPlatform.TIKTOK:
        return f"https://tiktok.com/@{handle}", label
    if platform in (SocialPlatform.FACEBOOK, SocialPlatform.YOUTUBE):
        return value, label
    return None, label


def avatar_url(photo_url: str, full_name: str, style: str = "initials") -> str:
    if photo_url:
        return photo_url
    return f"https://api.dicebear.com/9.x/{style}/svg?seed={quote(full_name, safe='')}"


def message_url(platform: str, email: str) -> str:
    if not email:
        return ""
    if platform == "mailto":
        return f"mailto:{email}"
    if platform == "teams":
        return f"https://teams.microsoft.com/l/chat/0/0?users={quote(email, safe='@')}"
    return ""


def phone_link(phone: str) -> str:
    digits = re.sub(r"[^\d+]", "", phone or "")
    return f"tel:{digits}" if digits else ""
