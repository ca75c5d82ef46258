import json
import logging
import re
from typing import Optional

from app.interview.models import FeedbackReport

logger = logging.getLogger("app.interview.feedback")


def _clamp_score(value) -> int | None:
    try:
        return max(0, min(10, int(round(float(value)))))
    except Exception:
        return None


def _string_list(value) -> tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(item).strip() for item in value if str(item or "").strip())


def _extract_json_dict(text: str) -> dict | None:
    text = (text or "").strip()
    if not text:
        return None

    cleaned = re.sub(r"```(?:json)?", "", text, flags=re.IGNORECASE).strip()
    try:
        parsed = json.loads(cleaned)
        return parsed if isinstance(parsed, dict) else None
    except Exception:
        pass

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start != -1 and end != -1 and end > start:
        try:
            parsed = json.loads(cleaned[start:end + 1])
            return parsed if isinstance(parsed, dict) else None
        except Exception:
            return None

    return None


def parse_feedback_report(raw: str) -> Optional[FeedbackReport]:
    """
    Best-effort parse of the scoring reply.
    Anything that is not a JSON object yields None so the view can offer a retry.
    """
    data = _extract_json_dict(raw)
    if data is None:
        logger.warning("feedback parse failed | chars=%s", len(str(raw or "")))
        return None

    scores = {}
    raw_scores = data.get("scores")
    if isinstance(raw_scores, dict):
        for name, value in raw_scores.items():
            score = _clamp_score(value)
            if score is not None:
                scores[str(name)] = score

    # Lists may arrive nested under "feedback" or at the top level.
    nested = data.get("feedback") if isinstance(data.get("feedback"), dict) else {}
    strengths = _string_list(nested.get("strengths", data.get("strengths")))
    improvements = _string_list(nested.get("improvements", data.get("improvements")))
    summary = str(data.get("summary") or "").strip()

    if not (scores or strengths or improvements or summary):
        logger.warning("feedback parse produced an empty report")
        return None

    return FeedbackReport(
        scores=scores,
        strengths=strengths,
        improvements=improvements,
        summary=summary,
    )
