from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from shipquote.core.normalize import client_ip_from_request
from shipquote.deps import get_quote_service
from shipquote.models import CachedQuoteResp, QuoteRequest
from shipquote.services.catalog import CatalogUnavailable

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/shipping", tags=["shipping"])


@router.post("/quote")
async def quote_shipping(body: QuoteRequest, req: Request = None, svc=Depends(get_quote_service)):
    if req is not None:
        logger.debug("quote request from %s with %d cart lines", client_ip_from_request(req), len(body.cart))
    try:
        resp = svc.quote(body)
    except CatalogUnavailable as exc:
        raise HTTPException(502, str(exc))
    return resp.model_dump(exclude_none=True)


@router.get("/quotes/{quote_key}", response_model=CachedQuoteResp, response_model_exclude_none=True)
async def get_cached_quote(quote_key: str, svc=Depends(get_quote_service)):
    entry = svc.cached_quote(quote_key)
    if entry is None:
        raise HTTPException(404, "Quote not found")
    return entry.to_dict()
