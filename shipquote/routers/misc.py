from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["misc"])

@router.get("/healthz")
async def healthz(req: Request):
    return {"ok": True, "version": req.app.version}
