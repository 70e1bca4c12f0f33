from __future__ import annotations
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from harvardplate.shared.api.deps import get_llm
from harvardplate.shared.llm.openai_client import LLMClient

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    return {"ok": True, "ts": time.time()}


@router.get("/health/llm")
async def health_llm(llm: LLMClient = Depends(get_llm)):
    available = await llm.check_availability()
    return JSONResponse(
        status_code=200 if available else 503,
        content={"ok": available, "llm": available, "model": llm.model, "ts": time.time()},
    )
