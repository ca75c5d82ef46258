import asyncio
import logging

from core.config import SCORING_MODEL, SCORING_TIMEOUT_SEC
from app.exchange import client as client_module
from app.interview.errors import ExchangeError, ExchangeTimeoutError

logger = logging.getLogger("app.exchange.scoring")


async def score_transcript(prompt: str, timeout_sec: float | None = None, client=None) -> str:
    """
    Stateless scoring request. Returns the raw model text; the caller parses it.
    """
    if not str(prompt or "").strip():
        return "{}"

    active_client = client if client is not None else client_module.client
    timeout = float(timeout_sec or SCORING_TIMEOUT_SEC)
    try:
        response = await asyncio.wait_for(
            active_client.chat.completions.create(
                model=SCORING_MODEL,
                messages=[
                    {
                        "role": "system",
                        "content": "You are a senior interviewer writing a candidate assessment. Output JSON only.",
                    },
                    {
                        "role": "user",
                        "content": prompt,
                    },
                ],
                temperature=0.3,
            ),
            timeout=timeout,
        )
        raw = str(response.choices[0].message.content or "").strip()
    except asyncio.TimeoutError as exc:
        logger.warning("score_transcript timeout | timeout=%.1fs", timeout)
        raise ExchangeTimeoutError("Scoring took too long to respond.") from exc
    except Exception as exc:
        logger.warning("score_transcript failure | err=%s", exc)
        raise ExchangeError(str(exc) or exc.__class__.__name__) from exc

    return raw
