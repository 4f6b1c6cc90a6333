"""Quote orchestration: normalize, classify, evaluate freight, consolidate, cache."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import List, Optional, Sequence, Union

from shipquote.core.normalize import normalize_cart, normalize_destination
from shipquote.core.time import now_utc, to_iso
from shipquote.core.types import CartLine, Classification, Dimensions, Package, QuoteCacheEntry
from shipquote.metrics import record_quote_outcome
from shipquote.models import (
    FreightQuoteResp,
    InstallOnlyQuoteResp,
    PackageOut,
    QuoteRequest,
    StandardQuoteResp,
)
from shipquote.services.catalog import CatalogUnavailable, ProductCatalog
from shipquote.services.classifier import classify, lookup_profiles
from shipquote.services.freight import evaluate_freight
from shipquote.services.packaging import consolidate
from shipquote.services.quote_cache import QuoteCache, cart_summary, derive_quote_key

logger = logging.getLogger(__name__)

INSTALL_ONLY_MESSAGE = "Install-only order. Schedule installation instead of shipping."
FREIGHT_MESSAGE = "Freight required due to weight/dimensions or product class."

QuoteResp = Union[StandardQuoteResp, FreightQuoteResp, InstallOnlyQuoteResp]


@dataclass(frozen=True)
class QuotePolicy:
    default_dimensions: Dimensions = Dimensions(length=12, width=9, height=4)
    default_weight_lbs: float = 5.0


def _packages_out(packages: Sequence[Package]) -> List[PackageOut]:
    return [PackageOut.model_validate(p.to_dict()) for p in packages]


def _standard_resp(entry: QuoteCacheEntry, *, quote_request_id: Optional[str] = None) -> StandardQuoteResp:
    return StandardQuoteResp(
        packages=_packages_out(entry.packages),
        installOnlySkus=list(entry.install_only_skus),
        missingProducts=list(entry.missing_products),
        quoteKey=entry.quote_key,
        quoteRequestId=quote_request_id or entry.quote_request_id,
        source=entry.source,
        rateCount=entry.rate_count,
        cartSummary=entry.cart_summary,
        createdAt=entry.created_at,
        expiresAt=entry.expires_at,
    )


class QuoteService:
    def __init__(self, catalog: ProductCatalog, cache: QuoteCache, policy: Optional[QuotePolicy] = None):
        self.catalog = catalog
        self.cache = cache
        self.policy = policy or QuotePolicy()

    def quote(self, req: QuoteRequest, now: Optional[datetime] = None) -> QuoteResp:
        now = now or now_utc()
        lines = normalize_cart(req.cart)
        destination = normalize_destination(req.destination)
        quote_key = (req.quote_key or "").strip() or derive_quote_key(lines, destination)

        cached = self.cache.lookup(quote_key, now=now)
        if cached is not None:
            record_quote_outcome("cache_hit")
            return _standard_resp(replace(cached, source="cache"), quote_request_id=req.quote_request_id)

        classification = self._classify(lines)
        if classification.install_only:
            record_quote_outcome("install_only")
            return InstallOnlyQuoteResp(
                message=INSTALL_ONLY_MESSAGE,
                installOnlySkus=classification.install_only_skus,
                missingProducts=classification.missing_products,
            )

        freight = evaluate_freight(classification.shippable)
        if freight.required:
            record_quote_outcome("freight")
            return FreightQuoteResp(
                message=FREIGHT_MESSAGE,
                packages=_packages_out(self._consolidate(classification)),
                installOnlySkus=classification.install_only_skus,
                missingProducts=classification.missing_products,
            )

        packages = self._consolidate(classification)

        entry = QuoteCacheEntry(
            quote_key=quote_key,
            quote_request_id=(req.quote_request_id or "").strip() or str(uuid.uuid4()),
            destination=destination,
            packages=packages,
            missing_products=classification.missing_products,
            install_only_skus=classification.install_only_skus,
            cart_summary=cart_summary(lines),
            created_at=to_iso(now),
            expires_at=self.cache.expiry_for(now),
            source="fresh",
        )
        self.cache.save(entry)
        record_quote_outcome("standard")
        return _standard_resp(entry)

    def cached_quote(self, quote_key: str, now: Optional[datetime] = None) -> Optional[QuoteCacheEntry]:
        entry = self.cache.lookup(quote_key, now=now)
        return replace(entry, source="cache") if entry is not None else None

    def _classify(self, lines: Sequence[CartLine]) -> Classification:
        try:
            profiles = lookup_profiles(self.catalog, lines)
        except CatalogUnavailable:
            raise
        except Exception as exc:
            logger.error("product catalog lookup failed: %s", exc)
            raise CatalogUnavailable("Product catalog unavailable") from exc
        return classify(lines, profiles)

    def _consolidate(self, classification: Classification) -> List[Package]:
        return consolidate(
            classification.shippable,
            default_dimensions=self.policy.default_dimensions,
            default_weight_lbs=self.policy.default_weight_lbs,
        )
