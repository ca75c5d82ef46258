import os
from pathlib import Path
from dotenv import load_dotenv

_BACKEND_ROOT = Path(__file__).resolve().parents[1]
_BACKEND_ENV_PATH = _BACKEND_ROOT / ".env"
load_dotenv(dotenv_path=_BACKEND_ENV_PATH, override=True)

OPENAI_API_KEY = str(os.getenv("OPENAI_API_KEY") or "").strip()
INTERVIEW_MODEL = str(os.getenv("INTERVIEW_MODEL") or "gpt-4o-mini").strip()
SCORING_MODEL = str(os.getenv("SCORING_MODEL") or INTERVIEW_MODEL).strip()
TTS_MODEL = str(os.getenv("TTS_MODEL") or "gpt-4o-mini-tts").strip()
TTS_VOICE = str(os.getenv("TTS_VOICE") or "alloy").strip()

# A hung remote call surfaces as ExchangeTimeoutError.
EXCHANGE_TIMEOUT_SEC = max(1.0, float(os.getenv("EXCHANGE_TIMEOUT_SEC", "30")))
SCORING_TIMEOUT_SEC = max(1.0, float(os.getenv("SCORING_TIMEOUT_SEC", "45")))

DEEPGRAM_API_KEY = str(os.getenv("DEEPGRAM_API_KEY") or "").strip()
STT_LANGUAGE = str(os.getenv("STT_LANGUAGE") or "en-US").strip()
RECOGNIZER_MAX_RESTARTS = max(0, int(os.getenv("RECOGNIZER_MAX_RESTARTS", "5")))

JD_EXCERPT_CHARS = max(100, int(os.getenv("JD_EXCERPT_CHARS", "1000")))
RESUME_EXCERPT_CHARS = max(100, int(os.getenv("RESUME_EXCERPT_CHARS", "2000")))

QA_MODE = os.getenv("QA_MODE", "false").lower() == "true"

_DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173"
CORS_ALLOW_ORIGINS = [
    origin.strip()
    for origin in str(os.getenv("CORS_ALLOW_ORIGINS") or _DEFAULT_CORS_ORIGINS).split(",")
    if origin.strip()
]

# Sessions whose client went away are closed after this much idle time.
SESSION_CLEANUP_TTL_SEC = max(60, int(os.getenv("SESSION_CLEANUP_TTL_SEC", "1800")))
SESSION_CLEANUP_INTERVAL_SEC = max(30, int(os.getenv("SESSION_CLEANUP_INTERVAL_SEC", "120")))

WS_MAX_TEXT_BYTES = max(1024, int(os.getenv("WS_MAX_TEXT_BYTES", "65536")))
WS_MAX_AUDIO_FRAME_BYTES = max(1024, int(os.getenv("WS_MAX_AUDIO_FRAME_BYTES", "65536")))
