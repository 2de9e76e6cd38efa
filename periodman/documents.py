"""
Published documents — the checkout-readable projection of a schedule.

Wire shape (one metafield per catalog item):

    {
        "catalogItemId": "gid://shopify/Product/1",
        "title": "Panettone",
        "variants": [
            {"variantId": "gid://shopify/ProductVariant/11",
             "title": "500g", "start": "2024-05-01", "end": "2024-05-10"}
        ]
    }

Older documents carry full ISO timestamps in start/end (start of day and
end of day, in UTC). They are read as LegacyWindow and upgraded to calendar
dates right here; nothing past this module ever sees a timestamp. Only the
calendar-date shape is written.

This module has no database or settings access, so the checkout engine can
use it inside the sandbox.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from datetime import timezone as dt_timezone
from typing import Any, Iterable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from django.utils.dateparse import parse_date, parse_datetime

from periodman.exceptions import DocumentError

METAFIELD_NAMESPACE = "sales_period"
METAFIELD_KEY = "sales_period"


# ══════════════════════════════════════════════════════════════
# CANONICAL TYPES
# ══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class WindowSpec:
    """One variant's availability window (calendar dates, both inclusive)."""

    merchandise_id: str
    label: str
    start: date
    end: date

    def as_wire(self) -> dict[str, str]:
        return {
            "variantId": self.merchandise_id,
            "title": self.label,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
        }


@dataclass(frozen=True)
class PublishedDocument:
    """Projection of a ScheduledItem without internal id, owner or timestamps."""

    catalog_item_id: str
    title: str
    variants: tuple[WindowSpec, ...] = ()

    def window_for(self, merchandise_id: str) -> WindowSpec | None:
        """First window governing this merchandise, if any."""
        for variant in self.variants:
            if variant.merchandise_id == merchandise_id:
                return variant
        return None

    def as_wire(self) -> dict[str, Any]:
        return {
            "catalogItemId": self.catalog_item_id,
            "title": self.title,
            "variants": [variant.as_wire() for variant in self.variants],
        }


# ══════════════════════════════════════════════════════════════
# RAW WINDOW SHAPES (resolved once, here)
# ══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class CurrentWindow:
    """Window entry with bare calendar dates."""

    merchandise_id: str
    label: str
    start: date
    end: date

    def resolve(self, tz_name: str = "") -> WindowSpec:
        return WindowSpec(self.merchandise_id, self.label, self.start, self.end)


@dataclass(frozen=True)
class LegacyWindow:
    """Window entry with full timestamps (start-of-day / end-of-day)."""

    merchandise_id: str
    label: str
    start: datetime
    end: datetime

    def resolve(self, tz_name: str = "") -> WindowSpec:
        """
        Upgrade to calendar dates.

        With the shop zone, each instant is read on the shop's wall clock.
        Without it, start is rounded to the nearest midnight and end to the
        nearest midnight minus one day, which recovers the shop's dates for
        any UTC offset under 12 hours.
        """
        if tz_name:
            return WindowSpec(
                self.merchandise_id,
                self.label,
                _instant_to_date(self.start, tz_name),
                _instant_to_date(self.end, tz_name),
            )
        return WindowSpec(
            self.merchandise_id,
            self.label,
            _nearest_midnight(self.start),
            _nearest_midnight(self.end) - timedelta(days=1),
        )


def _nearest_midnight(value: datetime) -> date:
    if value.tzinfo is not None:
        value = value.astimezone(dt_timezone.utc)
    day = value.date()
    if value - datetime.combine(day, time.min, tzinfo=value.tzinfo) >= timedelta(hours=12):
        day += timedelta(days=1)
    return day


def _instant_to_date(value: datetime, tz_name: str) -> date:
    if tz_name and value.tzinfo is not None:
        try:
            value = value.astimezone(ZoneInfo(tz_name))
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise DocumentError(f"unknown timezone {tz_name!r}") from e
    return value.date()


def _parse_boundary(value: Any) -> date | datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise DocumentError(f"date must be a string, got {type(value).__name__}")
    text = value.strip()
    try:
        if len(text) == 10:
            parsed = parse_date(text)
        else:
            parsed = parse_datetime(text)
    except ValueError as e:
        raise DocumentError(f"invalid date {value!r}") from e
    if parsed is None:
        raise DocumentError(f"invalid date {value!r}")
    return parsed


def read_window(entry: Any) -> CurrentWindow | LegacyWindow:
    """
    Read one raw window entry (wire or input dict).

    Accepts wire keys (variantId/title) and python keys
    (merchandise_id/label).

    Raises:
        DocumentError: Missing id, unparseable or mixed-shape dates
    """
    if not isinstance(entry, dict):
        raise DocumentError("window entry must be an object")

    merchandise_id = entry.get("variantId", entry.get("merchandise_id"))
    if not isinstance(merchandise_id, str) or not merchandise_id:
        raise DocumentError("window entry has no variant id", code="INVALID_MERCHANDISE")
    label = entry.get("title", entry.get("label")) or ""
    if not isinstance(label, str):
        label = str(label)

    if "start" not in entry or "end" not in entry:
        raise DocumentError(f"window for {merchandise_id} has no start/end")
    start = _parse_boundary(entry["start"])
    end = _parse_boundary(entry["end"])

    start_is_instant = isinstance(start, datetime)
    if start_is_instant != isinstance(end, datetime):
        raise DocumentError(f"window for {merchandise_id} mixes dates and timestamps")
    if start_is_instant:
        return LegacyWindow(merchandise_id, label, start, end)
    return CurrentWindow(merchandise_id, label, start, end)


def resolve_window(entry: Any, tz_name: str = "") -> WindowSpec:
    """read_window() + upgrade to the canonical WindowSpec."""
    if isinstance(entry, WindowSpec):
        return entry
    return read_window(entry).resolve(tz_name)


# ══════════════════════════════════════════════════════════════
# PROJECTION & SERIALIZATION
# ══════════════════════════════════════════════════════════════


def build_document(catalog_item_id: str, title: str,
                   windows: Iterable[WindowSpec]) -> PublishedDocument:
    """Document for a schedule that may not be stored yet."""
    return PublishedDocument(
        catalog_item_id=catalog_item_id,
        title=title,
        variants=tuple(windows),
    )


def project(item) -> PublishedDocument:
    """
    Project a stored ScheduledItem into its published document.

    Drops internal id, owner scope and timestamps; keeps window order.
    """
    return build_document(
        item.catalog_item_id,
        item.title,
        (window.as_spec() for window in item.windows.all()),
    )


def serialize(document: PublishedDocument) -> str:
    """
    Canonical JSON for a document.

    Same document → same bytes (fixed key order, no whitespace).
    """
    return json.dumps(document.as_wire(), separators=(",", ":"), ensure_ascii=False)


def parse_document(raw: Any, tz_name: str = "") -> PublishedDocument | None:
    """
    Parse a stored metafield value into a PublishedDocument.

    Args:
        raw: JSON string, already-decoded dict, or None (no metafield)
        tz_name: Shop zone used to upgrade legacy timestamp windows

    Returns:
        PublishedDocument, or None when there is no document

    Raises:
        DocumentError: Malformed JSON or unexpected shape
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise DocumentError("metafield value is not valid JSON") from e
    if not isinstance(raw, dict):
        raise DocumentError("metafield value must be an object")

    variants = raw.get("variants")
    if not isinstance(variants, list):
        raise DocumentError("document has no variants list")

    title = raw.get("title") or ""
    return PublishedDocument(
        catalog_item_id=str(raw.get("catalogItemId") or raw.get("productId") or ""),
        title=title if isinstance(title, str) else str(title),
        variants=tuple(resolve_window(entry, tz_name) for entry in variants),
    )
