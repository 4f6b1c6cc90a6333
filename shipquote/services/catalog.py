"""Product catalog lookup and shipping-profile resolution.

Catalog records come in two shapes: the current one keeps shipping attributes
under a ``shipping_config`` map, older records carry flat ``shipping_weight`` /
``box_dimensions`` / ``shipping_class`` / ``ships_alone`` attributes. Each
``resolve_*`` function below walks those sources in a fixed order so the
fallback chain for every field can be read (and tested) on its own.
"""

from __future__ import annotations

import logging
import math
import re
from abc import ABC, abstractmethod
from decimal import Decimal
from functools import reduce
from typing import Any, Dict, Iterable, List, Optional, Sequence

from boto3.dynamodb.conditions import Attr

from shipquote.core.types import Dimensions, ShippingProfile

logger = logging.getLogger(__name__)

# DynamoDB caps the IN operator at 100 values per operand.
_MAX_IN_VALUES = 100

_DIMS_RE = re.compile(r"(\d+(?:\.\d+)?)\s*[xX]\s*(\d+(?:\.\d+)?)\s*[xX]\s*(\d+(?:\.\d+)?)")


class CatalogUnavailable(Exception):
    """The product catalog could not be queried."""


def parse_dimensions(text: Any) -> Optional[Dimensions]:
    """Parse free text such as ``"24 x 12x6 in"`` into a box; ``None`` if it doesn't match."""
    if not text or not isinstance(text, str):
        return None
    m = _DIMS_RE.search(text)
    if not m:
        return None
    length, width, height = (float(g) for g in m.groups())
    return Dimensions(length=length, width=width, height=height)


def _number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        value = float(value)
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(num) or num < 0:
        return None
    return num


def _dims_from_map(value: Any) -> Optional[Dimensions]:
    if not isinstance(value, dict):
        return None
    parts = [_number(value.get(k)) for k in ("length", "width", "height")]
    if any(p is None for p in parts):
        return None
    length, width, height = parts
    return Dimensions(length=length, width=width, height=height)


def _config(record: Dict[str, Any]) -> Dict[str, Any]:
    cfg = record.get("shipping_config")
    return cfg if isinstance(cfg, dict) else {}


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def resolve_requires_shipping(record: Dict[str, Any]) -> bool:
    for value in (_config(record).get("requires_shipping"), record.get("requires_shipping")):
        if isinstance(value, bool):
            return value
    return True


def resolve_weight(record: Dict[str, Any]) -> float:
    for value in (_config(record).get("weight"), record.get("shipping_weight"), record.get("weight")):
        num = _number(value)
        if num is not None:
            return num
    return 0.0


def resolve_dimensions(record: Dict[str, Any]) -> Optional[Dimensions]:
    return (
        _dims_from_map(_config(record).get("dimensions"))
        or _dims_from_map(record.get("dimensions"))
        or parse_dimensions(record.get("box_dimensions"))
    )


def resolve_shipping_class(record: Dict[str, Any]) -> str:
    for value in (_config(record).get("shipping_class"), record.get("shipping_class")):
        text = _text(value)
        if text:
            return text
    return ""


def resolve_ships_alone(record: Dict[str, Any]) -> bool:
    cfg = _config(record)
    for value in (cfg.get("ships_alone"), cfg.get("separate_shipment"), record.get("ships_alone")):
        if isinstance(value, bool):
            return value
    return False


def profile_from_record(record: Dict[str, Any]) -> ShippingProfile:
    return ShippingProfile(
        product_id=_text(record.get("product_id")),
        sku=_text(record.get("sku")),
        title=_text(record.get("title")),
        requires_shipping=resolve_requires_shipping(record),
        product_type=(_text(record.get("product_type")) or "physical").lower(),
        weight=resolve_weight(record),
        dimensions=resolve_dimensions(record),
        shipping_class=resolve_shipping_class(record),
        ships_alone=resolve_ships_alone(record),
    )


class ProductCatalog(ABC):
    """Batched product lookup used by the quote pipeline."""

    @abstractmethod
    def resolve(self, skus: Sequence[str], ids: Sequence[str], titles: Sequence[str]) -> List[ShippingProfile]:
        """Return the profiles of every product matching any of the given keys."""


class InMemoryProductCatalog(ProductCatalog):
    def __init__(self, records: Iterable[Dict[str, Any]] = ()):
        self._profiles = [profile_from_record(r) for r in records]

    def resolve(self, skus, ids, titles):
        skus, ids, titles = set(skus), set(ids), set(titles)
        return [
            p
            for p in self._profiles
            if (p.sku and p.sku in skus) or (p.product_id and p.product_id in ids) or (p.title and p.title in titles)
        ]


def _chunks(values: List[str], size: int) -> List[List[str]]:
    return [values[i:i + size] for i in range(0, len(values), size)]


def _lookup_filter(skus: Sequence[str], ids: Sequence[str], titles: Sequence[str]):
    conditions = []
    for attr, values in (("sku", skus), ("product_id", ids), ("title", titles)):
        for chunk in _chunks(sorted(set(values)), _MAX_IN_VALUES):
            conditions.append(Attr(attr).is_in(chunk))
    if not conditions:
        return None
    return reduce(lambda a, b: a | b, conditions)


class DynamoProductCatalog(ProductCatalog):
    """Catalog backed by the products table; one paginated scan per lookup."""

    def __init__(self, table: Any):
        self._table = table

    def resolve(self, skus, ids, titles):
        filt = _lookup_filter(skus, ids, titles)
        if filt is None:
            return []
        kwargs: Dict[str, Any] = {"FilterExpression": filt}
        records: List[Dict[str, Any]] = []
        try:
            while True:
                resp = self._table.scan(**kwargs)
                records.extend(resp.get("Items", []))
                last = resp.get("LastEvaluatedKey")
                if not last:
                    break
                kwargs["ExclusiveStartKey"] = last
        except Exception as exc:
            logger.error("product catalog scan failed: %s", exc)
            raise CatalogUnavailable("Product catalog unavailable") from exc
        return [profile_from_record(r) for r in records]
