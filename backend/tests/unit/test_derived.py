from __future__ import annotations

import zlib
from datetime import date

from staff_directory.models.profile import SocialPlatform
from staff_directory.services import derived


def test_department_color_is_stable_palette_entry():
    expected = derived.DEPARTMENT_PALETTE[zlib.crc32(b"Engineering") % 8]
    assert derived.department_color("Engineering") == expected
    assert derived.department_color("Engineering") == derived.department_color("Engineering")
    assert derived.department_color("") == ""
    assert derived.department_color(None) == ""


def test_tenure_whole_years():
    assert derived.tenure("2022-03", date(2024, 5, 1)) == "2 yrs"
    assert derived.tenure("2022-06-15", date(2024, 5, 1)) == "1 yrs"


def test_tenure_under_one_year_and_invalid():
    assert derived.tenure("2024-01", date(2024, 5, 1)) == "< 1 yr"
    assert derived.tenure("2025-01", date(2024, 5, 1)) == "< 1 yr"
    assert derived.tenure("garbage", date(2024, 5, 1)) == ""
    assert derived.tenure("", date(2024, 5, 1)) == ""


def test_new_hire_threshold():
    today = date(2024, 5, 1)
    assert derived.is_new_hire("2024-04", 30, today)
    assert not derived.is_new_hire("2024-03", 30, today)
    assert not derived.is_new_hire("2024-04", 0, today)
    assert not derived.is_new_hire("", 30, today)


def test_new_hire_counts_days_until_a_future_start():
    today = date(2024, 5, 1)
    assert derived.is_new_hire("2024-05", 30, today)
    assert not derived.is_new_hire("2024-06", 30, today)
    assert derived.is_new_hire("2024-06", 31, today)


def test_start_date_from_parts():
    today = date(2024, 5, 1)
    assert derived.start_year_floor(today) == 2014
    assert derived.start_date_from_parts(2020, 3, today) == "2020-03"
    assert derived.start_date_from_parts("2014", "12", today) == "2014-12"
    assert derived.start_date_from_parts(2013, 1, today) == ""
    assert derived.start_date_from_parts(2025, 1, today) == ""
    assert derived.start_date_from_parts(2020, 13, today) == ""
    assert derived.start_date_from_parts("x", 1, today) == ""


def test_social_links():
    assert derived.social_link(SocialPlatform.WHATSAPP, "+49 151 234") == ("https://wa.me/49151234", "WhatsApp")
    assert derived.social_link(SocialPlatform.TELEGRAM, "@alice")[0] == "https://t.me/alice"
    assert derived.social_link(SocialPlatform.TIKTOK, "alice")[0] == "https://tiktok.com/@alice"
    assert derived.social_link(SocialPlatform.TWITTER, "@alice")[0] == "https://x.com/alice"
    assert derived.social_link(SocialPlatform.DISCORD, "alice#1") == (None, "Discord")
    assert derived.social_link(SocialPlatform.YOUTUBE, "https://youtube.com/@a")[0] == "https://youtube.com/@a"


def test_avatar_falls_back_to_generated_image():
    assert derived.avatar_url("https://cdn.example.com/a.png", "Alice") == "https://cdn.example.com/a.png"
    url = derived.avatar_url("", "Alice Archer", "initials")
    assert url == "https://api.dicebear.com/9.x/initials/svg?seed=Alice%20Archer"


def test_message_and_phone_links():
    assert derived.message_url("mailto", "a@example.com") == "mailto:a@example.com"
    assert derived.message_url("teams", "a@example.com").startswith("https://teams.microsoft.com/l/chat/")
    assert derived.message_url("none", "a@example.com") == ""
    assert derived.phone_link("+1 (555) 010-2000") == "tel:+15550102000"
    assert derived.phone_link("") == ""
