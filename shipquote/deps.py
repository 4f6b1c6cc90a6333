from __future__ import annotations

from functools import lru_cache

from shipquote.core.settings import S
from shipquote.core.types import Dimensions
from shipquote.services.catalog import DynamoProductCatalog
from shipquote.services.quote_cache import DynamoQuoteStore, QuoteCache
from shipquote.services.quotes import QuotePolicy, QuoteService


def policy_from_settings() -> QuotePolicy:
    return QuotePolicy(
        default_dimensions=Dimensions(
            length=S.default_package_length_in,
            width=S.default_package_width_in,
            height=S.default_package_height_in,
        ),
        default_weight_lbs=S.default_package_weight_lbs,
    )


@lru_cache(maxsize=1)
def get_quote_service() -> QuoteService:
    from shipquote.core.tables import T

    cache = QuoteCache(
        DynamoQuoteStore(T.quotes, ttl_attr=S.ddb_ttl_attr),
        ttl_seconds=S.quote_cache_ttl_seconds,
        enabled=S.quote_cache_enabled,
    )
    return QuoteService(DynamoProductCatalog(T.products), cache, policy_from_settings())
