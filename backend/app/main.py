import asyncio
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.interview import router as interview_router
from app.api.ws_interview import router as interview_ws_router
from app.session.registry import session_registry
from core.config import (
    CORS_ALLOW_ORIGINS,
    QA_MODE,
    SESSION_CLEANUP_INTERVAL_SEC,
    SESSION_CLEANUP_TTL_SEC,
)

logging.basicConfig(
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger("app.main")

app = FastAPI(title="Mock Interview Coach")
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)

_cleanup_task: asyncio.Task | None = None


async def _close_all(sessions) -> None:
    for session in sessions:
        try:
            await session.close()
        except Exception as exc:
            logger.warning("[SYSTEM] interview close failed | session=%s err=%s", getattr(session, "session_id", "?"), exc)


async def cleanup_sessions(ttl_sec: float) -> int:
    """Close interviews whose client has been gone longer than ``ttl_sec``."""
    stale = session_registry.cleanup_inactive(ttl_sec)
    await _close_all(stale)
    return len(stale)


async def _cleanup_forever():
    while True:
        await asyncio.sleep(SESSION_CLEANUP_INTERVAL_SEC)
        closed = await cleanup_sessions(SESSION_CLEANUP_TTL_SEC)
        if closed:
            logger.info("[SYSTEM] closed idle interviews=%s", closed)


@app.on_event("startup")
async def on_startup():
    global _cleanup_task
    if QA_MODE:
        logger.info("[SYSTEM] QA_MODE ENABLED, speech recognition and synthesis bypassed")
    logger.info("[SYSTEM] interview service up | cors=%s", CORS_ALLOW_ORIGINS)
    _cleanup_task = asyncio.create_task(_cleanup_forever())


@app.on_event("shutdown")
async def on_shutdown():
    global _cleanup_task
    task, _cleanup_task = _cleanup_task, None
    if task is not None:
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
    await _close_all(session_registry.drain())
    logger.info("[SYSTEM] interview service stopped")


@app.get("/healthz")
async def healthz():
    return {"status": "ok", "service": "interview", "sessions": len(session_registry)}


app.include_router(interview_router)
app.include_router(interview_ws_router)
