from typing import Any, Dict, Optional

from fastapi import APIRouter, Header, HTTPException, Request

router = APIRouter()


def _check_cron_secret(request: Request, authorization: Optional[str]) -> None:
    secret = request.app.state.config.cron_secret
    if not secret:
        return
    if authorization != f"Bearer {secret}":
        raise HTTPException(status_code=401, detail="invalid cron secret")


async def _run(request: Request, trigger: str) -> Dict[str, Any]:
    # all triggers share the scheduler lock and the one sqlite connection
    scheduler = request.app.state.scheduler
    result = await scheduler.run_once(trigger=trigger)
    if result is None:
        raise HTTPException(status_code=500, detail=scheduler.last_error or "ingestion run failed")
    return result


@router.get("/cron/scrape")
async def cron_scrape(request: Request, authorization: Optional[str] = Header(None)):
    _check_cron_secret(request, authorization)
    return await _run(request, "cron")


@router.post("/run")
async def run_now(request: Request, authorization: Optional[str] = Header(None)):
    _check_cron_secret(request, authorization)
    result = await _run(request, "manual")
    return {"ok": True, **result}
