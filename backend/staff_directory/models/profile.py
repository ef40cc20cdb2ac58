"""Employee profile attributes and the per-field normalisation schema."""

from __future__ import annotations

import re
from datetime import date
from enum import Enum
from typing import Any
from urllib.parse import urlsplit

from pydantic import BaseModel, Field

_TAG_RE = re.compile(r"<[^>]*>")
_SPACE_RE = re.compile(r"[ \t\r\f\v]+")
_YEAR_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})(?:-(\d{2}))?$")


class SocialPlatform(str, Enum):
    WHATSAPP = "whatsapp"
    TELEGRAM = "telegram"
    DISCORD = "discord"
    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"
    TWITTER = "twitter"
    YOUTUBE = "youtube"
    TIKTOK = "tiktok"


class TextField:
    """Single-line text: tags stripped, whitespace collapsed."""

    kind = "text"

    def normalize(self, raw: Any) -> str:
        if raw is None:
            return ""
        text = _TAG_RE.sub("", str(raw))
        return " ".join(text.split())


class MultilineTextField(TextField):
    """Like ``TextField`` but line breaks survive."""

    kind = "multiline"

    def normalize(self, raw: Any) -> str:
        if raw is None:
            return ""
        text = _TAG_RE.sub("", str(raw)).replace("\r\n", "\n")
        lines = [_SPACE_RE.sub(" ", line).strip() for line in text.split("\n")]
        return "\n".join(lines).strip()


class UrlField(TextField):
    """Absolute http(s) URL, anything else becomes empty."""

    kind = "url"

    def normalize(self, raw: Any) -> str:
        value = super().normalize(raw).replace(" ", "")
        if not value:
            return ""
        parts = urlsplit(value)
        if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
            return ""
        return value


class YearMonthField(TextField):
    """``YYYY-MM`` (a trailing day is accepted and dropped)."""

    kind = "year_month"

    def normalize(self, raw: Any) -> str:
        value = super().normalize(raw)
        match = _YEAR_MONTH_RE.match(value)
        if not match:
            return ""
        year, month, day = int(match.group(1)), int(match.group(2)), match.group(3)
        try:
            date(year, month, int(day) if day else 1)
        except ValueError:
            return ""
        return f"{year:04d}-{month:02d}"


PROFILE_SCHEMA: dict[str, TextField] = {
    "department": TextField(),
    "job_title": TextField(),
    "phone": TextField(),
    "office": TextField(),
    "bio": MultilineTextField(),
    "photo_url": UrlField(),
    "linkedin_url": UrlField(),
    "start_date": YearMonthField(),
}

SOCIAL_SCHEMA: dict[SocialPlatform, TextField] = {
    SocialPlatform.WHATSAPP: TextField(),
    SocialPlatform.TELEGRAM: TextField(),
    SocialPlatform.DISCORD: TextField(),
    SocialPlatform.INSTAGRAM: TextField(),
    SocialPlatform.FACEBOOK: UrlField(),
    SocialPlatform.TWITTER: TextField(),
    SocialPlatform.YOUTUBE: UrlField(),
    SocialPlatform.TIKTOK: TextField(),
}


class Profile(BaseModel):
    """Directory attributes of one employee. Absent values are empty strings."""

    department: str = ""
    job_title: str = ""
    phone: str = ""
    office: str = ""
    bio: str = ""
    photo_url: str = ""
    linkedin_url: str = ""
    start_date: str = ""
    social: dict[SocialPlatform, str] = Field(default_factory=dict)
    hidden_social_fields: list[SocialPlatform] = Field(default_factory=list)


class ProfileUpdate(BaseModel):
    """Partial profile write; keys left as ``None`` are untouched."""

    department: str | None = None
    job_title: str | None = None
    phone: str | None = None
    office: str | None = None
    bio: str | None = None
    photo_url: str | None = None
    linkedin_url: str | None = None
    start_date: str | None = None
    social: dict[str, str] | None = None
    hidden_social_fields: list[str] | None = None


def sanitize_profile_update(update: ProfileUpdate) -> dict[str, Any]:
    """Normalise every provided field through its schema entry.

    Unknown social platforms are dropped, as are hidden-field entries that
    do not name a platform.
    """
    provided = update.model_dump(exclude_none=True)
    clean: dict[str, Any] = {}

    for name, field in PROFILE_SCHEMA.items():
        if name in provided:
            clean[name] = field.normalize(provided[name])

    if "social" in provided:
        social: dict[SocialPlatform, str] = {}
        for key, value in provided["social"].items():
            try:
                platform = SocialPlatform(key)
            except ValueError:
                continue
            social[platform] = SOCIAL_SCHEMA[platform].normalize(value)
        clean["social"] = social

    if "hidden_social_fields" in provided:
        hidden: list[SocialPlatform] = []
        for key in provided["hidden_social_fields"]:
            try:
                platform = SocialPlatform(key)
            except ValueError:
                continue
            if platform not in hidden:
                hidden.append(platform)
        clean["hidden_social_fields"] = hidden

    return clean


def apply_profile_changes(profile: Profile, changes: dict[str, Any]) -> Profile:
    """Return a copy of ``profile`` with sanitised ``changes`` merged in.

    Social handles merge per platform; an empty handle removes the platform.
    """
    data = profile.model_dump()
    for key, value in changes.items():
        if key == "social":
            merged = dict(data["social"])
            for platform, handle in value.items():
                if handle:
                    merged[platform] = handle
                else:
                    merged.pop(platform, None)
            data["social"] = merged
        else:
            data[key] = value
    return Profile(**data)
