import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch

from fastapi import HTTPException

from quote_fixtures import DESTINATION
from shipquote.models import FreightQuoteResp, InstallOnlyQuoteResp, QuoteRequest, StandardQuoteResp
from shipquote.services.catalog import CatalogUnavailable, InMemoryProductCatalog
from shipquote.services.quote_cache import InMemoryQuoteStore, QuoteCache
from shipquote.services import quotes
from shipquote.services.quotes import QuoteService

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

PRODUCTS = [
    {"product_id": "p-a", "sku": "A", "title": "Air Filter", "shipping_weight": 3, "dimensions": {"length": 10, "width": 8, "height": 4}},
    {"product_id": "p-b", "sku": "B", "title": "Brake Kit", "shipping_config": {"weight": 4, "dimensions": {"length": 12, "width": 6, "height": 5}}},
    {"product_id": "p-hdr", "sku": "HDR", "title": "Headers", "shipping_weight": 30, "box_dimensions": "40x20x10", "ships_alone": True},
    {"product_id": "p-eng", "sku": "ENG", "title": "Crate Engine", "shipping_weight": 450},
    {"product_id": "p-svc", "sku": "SVC", "title": "Install Labor", "product_type": "service"},
    {"product_id": "p-dyno", "sku": "DYNO", "title": "Dyno Tune", "requires_shipping": False},
]


def request(cart, **extra):
    return QuoteRequest.model_validate({"cart": cart, "destination": dict(DESTINATION), **extra})


class TestQuoteService(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryQuoteStore()
        self.catalog = InMemoryProductCatalog(PRODUCTS)
        self.svc = QuoteService(self.catalog, QuoteCache(self.store, ttl_seconds=1800))

    def test_standard_quote(self):
        resp = self.svc.quote(request([{"sku": "A"}, {"sku": "B"}]), now=NOW)
        self.assertIsInstance(resp, StandardQuoteResp)
        self.assertTrue(resp.success)
        self.assertFalse(resp.freight)
        self.assertEqual(resp.source, "fresh")
        self.assertEqual(len(resp.packages), 1)
        self.assertEqual(resp.packages[0].weightLbs, 7)
        self.assertEqual(resp.packages[0].dimensions.model_dump(), {"length": 12, "width": 8, "height": 5})
        self.assertEqual(resp.cartSummary, "1x A, 1x B")
        self.assertEqual(resp.createdAt, "2026-10-19T12:00:00Z")
        self.assertEqual(resp.expiresAt, "2026-10-19T12:30:00Z")
        self.assertEqual(resp.rateCount, 0)
        self.assertIn(resp.quoteKey, self.store.entries)

    def test_second_call_is_served_from_cache(self):
        first = self.svc.quote(request([{"sku": "A"}, {"sku": "B", "quantity": 2}]), now=NOW)
        self.catalog.resolve = Mock(side_effect=AssertionError("catalog must not be called"))
        second = self.svc.quote(request([{"sku": "B", "quantity": 2}, {"sku": "A"}]), now=NOW + timedelta(minutes=5))
        self.assertEqual(second.source, "cache")
        self.assertEqual(second.quoteKey, first.quoteKey)
        self.assertEqual(second.quoteRequestId, first.quoteRequestId)
        self.assertEqual(second.packages, first.packages)

    def test_expired_entry_is_recomputed(self):
        first = self.svc.quote(request([{"sku": "A"}]), now=NOW)
        later = NOW + timedelta(seconds=1800)
        second = self.svc.quote(request([{"sku": "A"}]), now=later)
        self.assertEqual(second.source, "fresh")
        self.assertNotEqual(second.quoteRequestId, first.quoteRequestId)
        self.assertEqual(second.createdAt, "2026-10-19T12:30:00Z")

    def test_caller_key_and_request_id_honored(self):
        resp = self.svc.quote(request([{"sku": "A"}], quoteKey="client-key", quoteRequestId="req-42"), now=NOW)
        self.assertEqual(resp.quoteKey, "client-key")
        self.assertEqual(resp.quoteRequestId, "req-42")
        self.assertIn("client-key", self.store.entries)
        again = self.svc.quote(request([{"sku": "A"}], quoteKey="client-key", quoteRequestId="req-43"), now=NOW)
        self.assertEqual(again.source, "cache")
        self.assertEqual(again.quoteRequestId, "req-43")

    def test_ships_alone_packages(self):
        resp = self.svc.quote(request([{"sku": "HDR", "quantity": 3}]), now=NOW)
        self.assertEqual(len(resp.packages), 3)
        self.assertTrue(all(p.weightLbs == 30 and p.sku == "HDR" for p in resp.packages))

    def test_partial_resolution(self):
        resp = self.svc.quote(request([{"sku": "A"}, {"sku": "GHOST"}]), now=NOW)
        self.assertIsInstance(resp, StandardQuoteResp)
        self.assertEqual(resp.missingProducts, ["GHOST"])
        self.assertEqual(len(resp.packages), 1)

    def test_all_install_only(self):
        with patch.object(quotes, "consolidate") as consolidate_mock:
            with patch.object(quotes, "evaluate_freight") as freight_mock:
                resp = self.svc.quote(request([{"sku": "SVC"}, {"title": "Dyno Tune"}]), now=NOW)
        consolidate_mock.assert_not_called()
        freight_mock.assert_not_called()
        self.assertIsInstance(resp, InstallOnlyQuoteResp)
        self.assertTrue(resp.installOnly)
        self.assertEqual(resp.installOnlySkus, ["SVC", "DYNO"])
        self.assertEqual(resp.missingProducts, [])
        self.assertEqual(self.store.entries, {})

    def test_install_only_with_missing(self):
        resp = self.svc.quote(request([{"sku": "SVC"}, {"sku": "GHOST"}]), now=NOW)
        self.assertIsInstance(resp, InstallOnlyQuoteResp)
        self.assertEqual(resp.missingProducts, ["GHOST"])

    def test_install_skus_reported_on_standard_quote(self):
        resp = self.svc.quote(request([{"sku": "A"}, {"sku": "SVC"}]), now=NOW)
        self.assertIsInstance(resp, StandardQuoteResp)
        self.assertEqual(resp.installOnlySkus, ["SVC"])

    def test_freight_not_cached(self):
        resp = self.svc.quote(request([{"sku": "A"}, {"sku": "ENG"}]), now=NOW)
        self.assertIsInstance(resp, FreightQuoteResp)
        self.assertTrue(resp.freight)
        self.assertEqual(resp.packages[0].weightLbs, 453)
        self.assertEqual(self.store.entries, {})

    def test_oversized_ships_alone_rejected_before_lookup(self):
        catalog = Mock()
        svc = QuoteService(catalog, QuoteCache(self.store))
        with self.assertRaises(HTTPException) as ctx:
            svc.quote(request([{"sku": "HDR", "quantity": 2_000_000}]), now=NOW)
        self.assertEqual(ctx.exception.status_code, 400)
        catalog.resolve.assert_not_called()

    def test_freight_decided_before_consolidation(self):
        with patch.object(quotes, "consolidate", wraps=quotes.consolidate) as spy:
            resp = self.svc.quote(request([{"sku": "ENG"}]), now=NOW)
        self.assertIsInstance(resp, FreightQuoteResp)
        self.assertEqual(spy.call_count, 1)

    def test_validation_errors(self):
        with self.assertRaises(HTTPException):
            self.svc.quote(QuoteRequest.model_validate({"cart": [], "destination": dict(DESTINATION)}), now=NOW)
        with self.assertRaises(HTTPException):
            self.svc.quote(QuoteRequest.model_validate({"cart": [{"sku": "A"}], "destination": {"city": "x"}}), now=NOW)

    def test_catalog_failure_propagates(self):
        catalog = Mock()
        catalog.resolve.side_effect = RuntimeError("down")
        svc = QuoteService(catalog, QuoteCache(self.store))
        with self.assertRaises(CatalogUnavailable):
            svc.quote(request([{"sku": "A"}]), now=NOW)

    def test_store_outage_still_quotes(self):
        store = Mock()
        store.get.side_effect = RuntimeError("down")
        store.upsert.side_effect = RuntimeError("down")
        svc = QuoteService(self.catalog, QuoteCache(store))
        resp = svc.quote(request([{"sku": "A"}]), now=NOW)
        self.assertIsInstance(resp, StandardQuoteResp)
        self.assertEqual(resp.source, "fresh")
        store.upsert.assert_called_once()

    def test_cached_quote_lookup(self):
        resp = self.svc.quote(request([{"sku": "A"}]), now=NOW)
        entry = self.svc.cached_quote(resp.quoteKey, now=NOW)
        self.assertEqual(entry.source, "cache")
        self.assertIsNone(self.svc.cached_quote(resp.quoteKey, now=NOW + timedelta(hours=1)))


if __name__ == "__main__":
    unittest.main()
