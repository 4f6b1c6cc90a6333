from __future__ import annotations

import math
import re
from typing import Any, Dict, Iterable, List, Optional

from fastapi import HTTPException

from shipquote.core.types import CartLine, Destination

FALLBACK_IDENTIFIER = "custom_item"
UNKNOWN_IDENTIFIER = "unknown"

# Upper bound on units across the whole cart; ships-alone lines expand per unit.
MAX_CART_UNITS = 1000

_SKU_KEYS = ("sku",)
_PRODUCT_REF_KEYS = ("productId", "product_id")
_INTERNAL_ID_KEYS = ("id", "_id")
_TITLE_KEYS = ("title", "name")
_QUANTITY_KEYS = ("quantity", "qty")

_DEST_ALIASES = {
    "address_line1": ("addressLine1", "address_line1"),
    "city": ("city", "city_locality"),
    "state": ("state", "state_province"),
    "postal_code": ("postalCode", "postal_code"),
    "country": ("country", "country_code"),
}


def client_ip_from_request(req) -> str:
    xff = req.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    return req.client.host if req.client else "0.0.0.0"


def _clean_str(value: Any) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def _first(data: Dict[str, Any], keys: Iterable[str]) -> Optional[str]:
    for key in keys:
        cleaned = _clean_str(data.get(key))
        if cleaned:
            return cleaned
    return None


def normalize_quantity(value: Any) -> int:
    if isinstance(value, bool):
        return 1
    try:
        qty = float(value)
    except (TypeError, ValueError):
        return 1
    if not math.isfinite(qty):
        return 1
    return max(1, int(math.floor(qty)))


def normalize_cart_line(raw: Any) -> CartLine:
    if not isinstance(raw, dict):
        return CartLine(identifier=_clean_str(raw) or UNKNOWN_IDENTIFIER)

    sku = _first(raw, _SKU_KEYS)
    product_ref = _first(raw, _PRODUCT_REF_KEYS)
    internal_id = _first(raw, _INTERNAL_ID_KEYS)
    title = _first(raw, _TITLE_KEYS)
    quantity = 1
    for key in _QUANTITY_KEYS:
        if raw.get(key) is not None:
            quantity = normalize_quantity(raw.get(key))
            break

    identifier = sku or product_ref or internal_id or title or FALLBACK_IDENTIFIER
    return CartLine(
        identifier=identifier,
        quantity=quantity,
        sku=sku,
        product_id=product_ref or internal_id,
        title=title,
    )


def normalize_cart(raw_cart: Any) -> List[CartLine]:
    if not isinstance(raw_cart, list) or not raw_cart:
        raise HTTPException(400, "Missing cart (skus + qty)")
    lines = [normalize_cart_line(raw) for raw in raw_cart]
    if sum(l.quantity for l in lines) > MAX_CART_UNITS:
        raise HTTPException(400, f"Cart exceeds {MAX_CART_UNITS} units")
    return lines


def normalize_postal_code(value: Optional[str]) -> str:
    return re.sub(r"\s+", "", value or "").upper()


def normalize_destination(raw: Any) -> Destination:
    if not isinstance(raw, dict):
        raise HTTPException(400, "Missing destination address fields")

    fields = {name: _first(raw, aliases) for name, aliases in _DEST_ALIASES.items()}
    postal_code = normalize_postal_code(fields["postal_code"])
    if not fields["address_line1"] or not postal_code:
        raise HTTPException(400, "Missing destination address fields")

    return Destination(
        address_line1=fields["address_line1"],
        city=fields["city"] or "",
        state=(fields["state"] or "").upper(),
        postal_code=postal_code,
        country=(fields["country"] or "US").upper(),
    )
