"""VIP advertisement feed published as a spreadsheet CSV export."""

from __future__ import annotations

import logging

import httpx

from ..types import VipAdItem

logger = logging.getLogger(__name__)

STATUS_HEADER = "status"
IMAGE_HEADER = "image"
LINK_HEADERS = ("ctalink", "cta link", "link")
ACTIVE_STATUS = "ACTIVE"


def parse_csv_row(row: str) -> list[str]:
    """Split one CSV line, honouring quoted commas and doubled quotes.

    Every lone quote toggles quoting wherever it appears, so a malformed cell
    such as ``ab"c,d"e`` reads as ``abc,de`` instead of being rejected.
    """
    cells: list[str] = []
    current: list[str] = []
    in_quote = False
    i = 0
    while i < len(row):
        char = row[i]
        if char == '"':
            if in_quote and row[i + 1 : i + 2] == '"':
                current.append('"')
                i += 1
            else:
                in_quote = not in_quote
        elif char == "," and not in_quote:
            cells.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1
    cells.append("".join(current).strip())
    return cells


def parse_csv(text: str) -> list[list[str]]:
    """Parse a CSV export line by line; quoted cells never span lines."""
    return [parse_csv_row(line) for line in text.splitlines() if line.strip()]


def _find(headers: list[str], names: tuple[str, ...]) -> int:
    for idx, header in enumerate(headers):
        if header in names:
            return idx
    return -1


def select_active_ad(rows: list[list[str]]) -> VipAdItem | None:
    """Pick the bottom-most ``ACTIVE`` row that has an image."""
    if len(rows) < 2:
        logger.warning("ads: csv is empty or header only")
        return None
    headers = [h.strip().lower() for h in rows[0]]
    status_idx = _find(headers, (STATUS_HEADER,))
    image_idx = _find(headers, (IMAGE_HEADER,))
    link_idx = _find(headers, LINK_HEADERS)
    if status_idx == -1 or image_idx == -1:
        logger.error("ads: 'Status' or 'Image' column missing", extra={"headers": headers})
        return None
    for row_number in range(len(rows) - 1, 0, -1):
        cols = rows[row_number]
        if status_idx >= len(cols) or not cols[status_idx]:
            continue
        if cols[status_idx].upper() != ACTIVE_STATUS:
            continue
        image_url = cols[image_idx] if image_idx < len(cols) else ""
        if not image_url:
            continue
        cta_link = cols[link_idx] if 0 <= link_idx < len(cols) else ""
        logger.debug("ads: active ad found", extra={"row": row_number + 1})
        return VipAdItem(image_url=image_url, cta_link=cta_link)
    logger.info("ads: no ACTIVE row")
    return None


def looks_like_html(text: str) -> bool:
    return text.strip().startswith("<!DOCTYPE html>") or "<html" in text


def fetch_vip_ad(
    url: str | None,
    *,
    timeout_s: float = 30.0,
    http: httpx.Client | None = None,
) -> VipAdItem | None:
    if not url:
        return None
    try:
        if http is not None:
            response = http.get(url, timeout=timeout_s)
        else:
            with httpx.Client(timeout=timeout_s, follow_redirects=True) as client:
                response = client.get(url)
        if response.status_code >= 400:
            logger.error("ads: http error", extra={"status": response.status_code})
            return None
        text = response.text
        # A sheet that is not shared publicly answers with the sign-in page.
        if looks_like_html(text):
            logger.error("ads: feed returned html instead of csv; check sheet sharing and gid")
            return None
        return select_active_ad(parse_csv(text))
    except Exception as exc:
        logger.exception("ads: fetch failed", exc_info=exc)
        return None
