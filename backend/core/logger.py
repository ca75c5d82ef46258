import json
import logging
import time
from typing import Any

logger = logging.getLogger("interview.events")

# Candidate-authored or model-authored content; only its length is logged.
_REDACTED_KEYS = frozenset({
	"text",
	"answer",
	"transcript",
	"transcript_text",
	"prompt",
	"directive",
	"reply",
	"resume_text",
	"job_description",
})


def _redact(key: str, value: Any) -> Any:
	if str(key or "").lower() in _REDACTED_KEYS:
		return {"redacted": True, "length": len(str(value or ""))}
	if value is None or isinstance(value, (str, int, float, bool)):
		return value
	if isinstance(value, dict):
		return {str(k): _redact(str(k), v) for k, v in value.items()}
	if isinstance(value, (list, tuple, set)):
		return [_redact(key, item) for item in value]
	return str(value)


def log_event(component: str, event: str, session_id: str, level: int = logging.INFO, **fields) -> None:
	"""One JSON line per session event. Content fields are reduced to their length."""
	payload = {
		"ts": round(time.time(), 3),
		"component": str(component or "app"),
		"event": str(event or "unknown"),
		"session_id": str(session_id or ""),
	}
	payload.update({str(k): _redact(str(k), v) for k, v in fields.items()})
	logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))
