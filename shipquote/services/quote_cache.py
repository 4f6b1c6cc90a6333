"""Content-addressed cache of computed shipping quotes.

The key is a SHA-256 over the sorted cart lines and the normalized
destination, so two requests for the same cart in a different order share an
entry. The store behind the cache is optional for correctness: every failure
to read or write is logged and treated as a miss or a no-op.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Optional, Sequence

from shipquote.core.crypto import canonical_json, sha256_str
from shipquote.core.time import now_utc, parse_iso, to_iso
from shipquote.core.types import CartLine, Destination, QuoteCacheEntry
from shipquote.metrics import record_cache_error

logger = logging.getLogger(__name__)


def quote_key_payload(lines: Sequence[CartLine], destination: Destination) -> Dict[str, Any]:
    items = sorted(
        ({"identifier": l.identifier, "quantity": l.quantity} for l in lines),
        key=lambda i: (i["identifier"], i["quantity"]),
    )
    return {
        "items": items,
        "destination": {
            "addressLine1": destination.address_line1.lower(),
            "city": destination.city.lower(),
            "state": destination.state,
            "postalCode": destination.postal_code,
            "country": destination.country,
        },
    }


def derive_quote_key(lines: Sequence[CartLine], destination: Destination) -> str:
    return sha256_str(canonical_json(quote_key_payload(lines, destination)))


def cart_summary(lines: Sequence[CartLine]) -> str:
    return ", ".join(f"{l.quantity}x {l.identifier}" for l in lines)


def is_expired(entry: QuoteCacheEntry, now: datetime) -> bool:
    if not entry.expires_at:
        return False
    expires = parse_iso(entry.expires_at)
    # unreadable expiry counts as expired
    return expires is None or now >= expires


class QuoteStore(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[QuoteCacheEntry]:
        ...

    @abstractmethod
    def upsert(self, entry: QuoteCacheEntry) -> None:
        ...


class InMemoryQuoteStore(QuoteStore):
    def __init__(self):
        self.entries: Dict[str, QuoteCacheEntry] = {}

    def get(self, key):
        return self.entries.get(key)

    def upsert(self, entry):
        self.entries[entry.quote_key] = entry


def _to_ddb(value: Any) -> Any:
    return json.loads(json.dumps(value), parse_float=Decimal)


def _from_ddb(value: Any) -> Any:
    if isinstance(value, list):
        return [_from_ddb(v) for v in value]
    if isinstance(value, dict):
        return {k: _from_ddb(v) for k, v in value.items()}
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


class DynamoQuoteStore(QuoteStore):
    """One item per quote key; ``put_item`` replaces the whole item.

    Items with an expiry carry it as epoch seconds in ``ttl_attr`` so the
    table's TTL sweeper can drop them.
    """

    def __init__(self, table: Any, *, ttl_attr: str = "ttl_epoch"):
        self._table = table
        self._ttl_attr = ttl_attr

    def get(self, key):
        item = self._table.get_item(Key={"quote_key": key}).get("Item")
        if not item:
            return None
        data = _from_ddb(item.get("entry") or {})
        return QuoteCacheEntry.from_dict(data)

    def upsert(self, entry):
        item = {"quote_key": entry.quote_key, "entry": _to_ddb(entry.to_dict())}
        expires = parse_iso(entry.expires_at)
        if expires is not None:
            item[self._ttl_attr] = int(expires.timestamp())
        self._table.put_item(Item=item)


class QuoteCache:
    def __init__(self, store: Optional[QuoteStore], *, ttl_seconds: int = 1800, enabled: bool = True):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.enabled = enabled and store is not None

    def lookup(self, key: str, now: Optional[datetime] = None) -> Optional[QuoteCacheEntry]:
        if not self.enabled or not key:
            return None
        try:
            entry = self.store.get(key)
        except Exception as exc:
            logger.warning("quote cache read failed for %s: %s", key, exc)
            record_cache_error("get")
            return None
        if entry is None:
            logger.debug("quote cache miss %s", key)
            return None
        if not entry.packages and not entry.rate_count:
            logger.debug("quote cache entry %s is empty", key)
            return None
        if is_expired(entry, now or now_utc()):
            logger.debug("quote cache entry %s expired at %s", key, entry.expires_at)
            return None
        logger.debug("quote cache hit %s", key)
        return entry

    def expiry_for(self, created: datetime) -> Optional[str]:
        if self.ttl_seconds <= 0:
            return None
        return to_iso(created + timedelta(seconds=self.ttl_seconds))

    def save(self, entry: QuoteCacheEntry) -> bool:
        if not self.enabled:
            return False
        try:
            self.store.upsert(entry)
        except Exception as exc:
            logger.warning("quote cache write failed for %s: %s", entry.quote_key, exc)
            record_cache_error("upsert")
            return False
        return True
