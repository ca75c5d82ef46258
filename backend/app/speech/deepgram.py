import json
import logging
from urllib.parse import urlencode

import websockets

from core.config import DEEPGRAM_API_KEY, QA_MODE
from app.speech.capture import RecognitionResult

logger = logging.getLogger("deepgram_recognizer")

DEEPGRAM_LISTEN_URL = "wss://api.deepgram.com/v1/listen"
DEEPGRAM_ENDPOINTING_MS = 300
MIN_FRAME_BYTES = 640  # ~20ms of linear16 @ 16kHz


class DeepgramRecognitionStream:
    def __init__(self, socket):
        self._socket = socket
        self._buffer = bytearray()
        self._closed = False

    async def send(self, frame: bytes):
        if self._closed:
            return

        self._buffer.extend(frame)
        if len(self._buffer) >= MIN_FRAME_BYTES:
            await self._socket.send(bytes(self._buffer))
            self._buffer.clear()

    async def results(self):
        async for message in self._socket:
            if isinstance(message, bytes):
                continue

            data = json.loads(message)
            if "channel" not in data:
                continue

            alternatives = (data.get("channel") or {}).get("alternatives") or []
            if not alternatives:
                continue

            text = str(alternatives[0].get("transcript") or "").strip()
            if not text:
                continue

            yield RecognitionResult(
                text=text,
                is_final=bool(data.get("is_final", False)),
                start=float(data.get("start") or 0.0),
            )

    async def close(self):
        if self._closed:
            return
        self._closed = True
        try:
            if self._buffer:
                await self._socket.send(bytes(self._buffer))
                self._buffer.clear()
            await self._socket.send(json.dumps({"type": "CloseStream"}))
        except websockets.exceptions.ConnectionClosed:
            pass
        finally:
            await self._socket.close()


class DeepgramRecognizer:
    """
    Continuous recognition over Deepgram's live endpoint.
    Each open() is one recognition run; the socket closing ends the run.
    """

    def __init__(self, api_key: str | None = None, enabled: bool | None = None, sample_rate: int = 16000):
        self.api_key = api_key if api_key is not None else DEEPGRAM_API_KEY
        self.enabled = (not QA_MODE) if enabled is None else enabled
        self.sample_rate = sample_rate
        if self.enabled and not self.api_key:
            logger.error("[DG] DEEPGRAM_API_KEY not set - speech-to-text will NOT work")
            self.enabled = False

    def build_url(self, language: str) -> str:
        query = urlencode({
            "model": "nova-2",
            "language": language,
            "punctuate": "true",
            "interim_results": "true",
            "endpointing": DEEPGRAM_ENDPOINTING_MS,
            "encoding": "linear16",
            "sample_rate": self.sample_rate,
            "channels": 1,
        })
        return f"{DEEPGRAM_LISTEN_URL}?{query}"

    async def open(self, language: str) -> DeepgramRecognitionStream:
        if not self.enabled:
            raise RuntimeError("Deepgram recognizer disabled")

        socket = await websockets.connect(
            self.build_url(language),
            additional_headers={"Authorization": f"Token {self.api_key}"},
            ping_interval=5,
            ping_timeout=20,
            max_size=None,
        )
        logger.info("[DG] recognition stream opened | language=%s", language)
        return DeepgramRecognitionStream(socket)
