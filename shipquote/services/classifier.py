from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from shipquote.core.types import CartLine, Classification, ShippableLine, ShippingProfile
from shipquote.services.catalog import ProductCatalog

logger = logging.getLogger(__name__)


class ProfileIndex:
    """Profiles indexed by SKU, product id and title; lookups go in that order."""

    def __init__(self, profiles: Sequence[ShippingProfile]):
        self.by_sku: Dict[str, ShippingProfile] = {}
        self.by_id: Dict[str, ShippingProfile] = {}
        self.by_title: Dict[str, ShippingProfile] = {}
        for p in profiles:
            if p.sku:
                self.by_sku.setdefault(p.sku, p)
            if p.product_id:
                self.by_id.setdefault(p.product_id, p)
            if p.title:
                self.by_title.setdefault(p.title, p)

    def find(self, line: CartLine) -> Optional[ShippingProfile]:
        if line.sku and line.sku in self.by_sku:
            return self.by_sku[line.sku]
        if line.product_id and line.product_id in self.by_id:
            return self.by_id[line.product_id]
        if line.title and line.title in self.by_title:
            return self.by_title[line.title]
        return None


def lookup_profiles(catalog: ProductCatalog, lines: Sequence[CartLine]) -> List[ShippingProfile]:
    skus = sorted({l.sku for l in lines if l.sku})
    ids = sorted({l.product_id for l in lines if l.product_id})
    titles = sorted({l.title for l in lines if l.title})
    if not (skus or ids or titles):
        return []
    return catalog.resolve(skus, ids, titles)


def is_install_only_class(shipping_class: str) -> bool:
    return (shipping_class or "").strip().lower().startswith("install")


def _install_key(line: CartLine, profile: ShippingProfile) -> str:
    return profile.sku or line.sku or profile.product_id or line.product_id or line.identifier


def _append_unique(values: List[str], value: str) -> None:
    if value and value not in values:
        values.append(value)


def classify(lines: Sequence[CartLine], profiles: Sequence[ShippingProfile]) -> Classification:
    index = ProfileIndex(profiles)
    out = Classification()
    for line in lines:
        profile = index.find(line)
        if profile is None:
            _append_unique(out.missing_products, line.identifier)
            continue
        if not profile.requires_shipping or profile.product_type == "service":
            _append_unique(out.install_only_skus, _install_key(line, profile))
            continue
        if is_install_only_class(profile.shipping_class):
            _append_unique(out.install_only_skus, _install_key(line, profile))
            continue
        out.shippable.append(ShippableLine(line=line, profile=profile))

    if out.missing_products:
        logger.info("catalog has no product for: %s", ", ".join(out.missing_products))
    return out
