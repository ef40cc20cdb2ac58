from __future__ import annotations

import math

from staff_directory.models.directory import PageButton, PageLink, PaginationWindow


def total_pages_for(total_items: int, page_size: int) -> int:
    if page_size <= 0:
        return 1
    return max(1, math.ceil(max(0, total_items) / page_size))


def compute(total_items: int, page_size: int, requested_page: int) -> PaginationWindow:
    """Clamp the requested page and lay out the compressed button row.

    Pages shown: first, last, and current +/- 1. Each gap between shown
    pages collapses into a single ellipsis. A single page needs no buttons.
    """
    total_pages = total_pages_for(total_items, page_size)
    current = min(max(requested_page, 1), total_pages)

    if total_pages <= 1:
        return PaginationWindow(current_page=current, total_pages=total_pages)

    shown = sorted({1, total_pages} | {n for n in (current - 1, current, current + 1) if 1 <= n <= total_pages})

    buttons: list[PageButton] = []
    previous_shown = 0
    for number in shown:
        if previous_shown and number - previous_shown > 1:
            buttons.append(PageButton(is_ellipsis=True))
        buttons.append(PageButton(page_number=number, is_current=number == current))
        previous_shown = number

    return PaginationWindow(
        current_page=current,
        total_pages=total_pages,
        buttons=buttons,
        previous=PageLink(page=current - 1, disabled=current == 1),
        next=PageLink(page=current + 1, disabled=current == total_pages),
    )
