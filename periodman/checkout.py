"""
Checkout validation — enforce sales periods on a cart.

Runs once per checkout attempt inside the host's sandbox: no database, no
settings, no network. Everything it needs arrives in the input: each cart
line's merchandise with its product's published metafield value (already
resolved by the host), and the shop's local calendar date.

Fails open. A malformed document or an unexpected line shape means "no
restriction for that line" plus one diagnostic log line; it never blocks
checkout for everybody.

Host contract (cart validation function):

    input:  {"cart": {"lines": [{"merchandise": {
                 "__typename": "ProductVariant", "id": "...",
                 "product": {"id": "...", "title": "...",
                             "metafield": {"jsonValue": {...}} | {"value": "..."} | null}}}]},
             "shop": {"localTime": {"date": "YYYY-MM-DD"}}}
    output: {"errors": [{"localizedMessage": "...", "target": "cart"}]}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any

from django.utils.dateparse import parse_date

from periodman.classifier import WindowStatus, classify
from periodman.documents import PublishedDocument, parse_document
from periodman.exceptions import DocumentError

logger = logging.getLogger('periodman')

VARIANT_TYPENAME = "ProductVariant"
CART_TARGET = "cart"

NOT_YET_AVAILABLE_MESSAGE = 'The sales period for "{title}" has not started yet.'
NO_LONGER_AVAILABLE_MESSAGE = 'The sales period for "{title}" has ended.'


class RejectionKind(str, Enum):
    """Why a line was rejected."""

    NOT_YET_AVAILABLE = "not_yet_available"
    NO_LONGER_AVAILABLE = "no_longer_available"


@dataclass(frozen=True)
class RejectionReason:
    """One blocking error for the cart."""

    kind: RejectionKind
    message: str
    merchandise_id: str
    catalog_item_id: str | None = None
    target: str = CART_TARGET

    def as_dict(self) -> dict[str, str]:
        return {"message": self.message, "target": self.target}

    def as_function_error(self) -> dict[str, str]:
        return {"localizedMessage": self.message, "target": self.target}


@dataclass(frozen=True)
class CartLine:
    """A cart line with its merchandise and the parent's published value."""

    merchandise_id: str
    is_variant: bool = True
    catalog_item_id: str | None = None
    catalog_item_title: str | None = None
    metafield: Any = None  # raw JSON string, decoded dict, or None

    @classmethod
    def from_input(cls, raw: Any) -> "CartLine":
        """Build from one host input line. Unknown shapes become non-variant lines."""
        merchandise = (raw or {}).get("merchandise") if isinstance(raw, dict) else None
        if not isinstance(merchandise, dict):
            return cls(merchandise_id="", is_variant=False)

        product = merchandise.get("product")
        product = product if isinstance(product, dict) else {}
        metafield = product.get("metafield")
        value = None
        if isinstance(metafield, dict):
            value = metafield.get("jsonValue")
            if value is None:
                value = metafield.get("value")

        return cls(
            merchandise_id=str(merchandise.get("id") or ""),
            is_variant=merchandise.get("__typename") == VARIANT_TYPENAME,
            catalog_item_id=product.get("id"),
            catalog_item_title=product.get("title"),
            metafield=value,
        )


@dataclass(frozen=True)
class CartSnapshot:
    """Lines of one checkout attempt, in cart order."""

    lines: tuple[CartLine, ...] = ()

    @classmethod
    def from_function_input(cls, payload: Any) -> "CartSnapshot":
        cart = payload.get("cart") if isinstance(payload, dict) else None
        raw_lines = cart.get("lines") if isinstance(cart, dict) else None
        if not isinstance(raw_lines, list):
            return cls()
        return cls(lines=tuple(CartLine.from_input(raw) for raw in raw_lines))


_MALFORMED = object()


def _document_for(line: CartLine, tz_name: str,
                  cache: dict[str, Any]) -> PublishedDocument | None:
    key = line.catalog_item_id
    if key is not None and key in cache:
        cached = cache[key]
        return None if cached is _MALFORMED else cached

    try:
        document = parse_document(line.metafield, tz_name)
    except DocumentError as e:
        logger.warning(
            "checkout.document.malformed",
            extra={"catalog_item_id": line.catalog_item_id, "reason": str(e)},
        )
        document = _MALFORMED

    if key is not None:
        cache[key] = document
    return None if document is _MALFORMED else document


def _check_line(line: CartLine, today: date, tz_name: str,
                cache: dict[str, Any]) -> RejectionReason | None:
    if not line.is_variant or not line.merchandise_id:
        return None

    document = _document_for(line, tz_name, cache)
    if document is None:
        return None

    window = document.window_for(line.merchandise_id)
    if window is None:
        return None

    status = classify(today, window)
    if status is WindowStatus.ACTIVE:
        return None

    title = line.catalog_item_title or document.title
    if status is WindowStatus.UPCOMING:
        kind, template = RejectionKind.NOT_YET_AVAILABLE, NOT_YET_AVAILABLE_MESSAGE
    else:
        kind, template = RejectionKind.NO_LONGER_AVAILABLE, NO_LONGER_AVAILABLE_MESSAGE

    return RejectionReason(
        kind=kind,
        message=template.format(title=title),
        merchandise_id=line.merchandise_id,
        catalog_item_id=line.catalog_item_id,
    )


def validate(cart: CartSnapshot, shop_local_date: date,
             tz_name: str = "") -> list[RejectionReason]:
    """
    Rejection reasons for a cart, in cart line order.

    Args:
        cart: Cart snapshot with published metafield values
        shop_local_date: The shop's calendar date
        tz_name: Shop zone for upgrading legacy timestamp documents

    Returns:
        One RejectionReason per line outside its window (duplicates kept)
    """
    reasons = []
    cache: dict[str, Any] = {}

    for index, line in enumerate(cart.lines):
        try:
            reason = _check_line(line, shop_local_date, tz_name, cache)
        except Exception:
            logger.warning(
                "checkout.line.skipped",
                exc_info=True,
                extra={"line": index, "merchandise_id": line.merchandise_id},
            )
            continue
        if reason is not None:
            reasons.append(reason)

    return reasons


def shop_date_from_input(payload: Any) -> date | None:
    """shop.localTime.date from the host input, or None."""
    try:
        raw = payload["shop"]["localTime"]["date"]
        return parse_date(raw)
    except (KeyError, TypeError, ValueError):
        return None


def run(payload: Any, shop_local_date: date | None = None, tz_name: str = "") -> dict[str, list]:
    """
    Host entry point: function input in, function result out.

    Args:
        payload: Decoded function input
        shop_local_date: Override for shop.localTime.date
        tz_name: Shop zone for legacy documents
    """
    today = shop_local_date or shop_date_from_input(payload)
    if today is None:
        logger.warning("checkout.shop_date.missing")
        return {"errors": []}

    cart = CartSnapshot.from_function_input(payload)
    reasons = validate(cart, today, tz_name)
    return {"errors": [reason.as_function_error() for reason in reasons]}
