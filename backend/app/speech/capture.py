import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from core.config import RECOGNIZER_MAX_RESTARTS, STT_LANGUAGE
from core.state import CaptureState
from app.interview.errors import CaptureError
from app.interview.models import Recording
from app.speech.stream_guard import RecognitionRestartGuard

logger = logging.getLogger("app.speech.capture")

TranscriptFn = Callable[[str, bool], Awaitable[None]]

RESTART_DELAY_SEC = 0.25
AUDIO_DRAIN_TIMEOUT_SEC = 1.0


@dataclass
class RecognitionResult:
    text: str
    is_final: bool = False
    start: float = 0.0


class TranscriptionCapture:
    """
    Microphone + continuous speech recognition for one answer at a time.

    While a recording is active the recognizer is kept listening: when a
    recognition run ends or fails it is reopened, up to ``max_restarts``
    consecutive times without a result in between.
    """

    def __init__(
        self,
        microphone,
        recognizer=None,
        language: str | None = None,
        max_restarts: int | None = None,
        on_transcript: Optional[TranscriptFn] = None,
        clock: Callable[[], float] = time.monotonic,
        restart_delay_sec: float = RESTART_DELAY_SEC,
    ):
        self.microphone = microphone
        self.recognizer = recognizer
        self.language = language or STT_LANGUAGE
        self.max_restarts = RECOGNIZER_MAX_RESTARTS if max_restarts is None else max_restarts
        self.on_transcript = on_transcript
        self.restart_delay_sec = restart_delay_sec
        self._clock = clock

        self.state = CaptureState.IDLE
        self.recording: Recording | None = None
        self._handle = None
        self._stream = None
        self._guard: RecognitionRestartGuard | None = None
        self._audio_task: asyncio.Task | None = None
        self._recognition_task: asyncio.Task | None = None

    @property
    def is_active(self) -> bool:
        return self.recording is not None and self.recording.is_active

    @property
    def elapsed_seconds(self) -> int:
        if self.recording is None:
            return 0
        return self.recording.elapsed_seconds(self._clock())

    @property
    def restart_count(self) -> int:
        return self._guard.total_restarts if self._guard else 0

    @property
    def transcript(self) -> str:
        if self.recording is None:
            return ""
        if self.recording.is_active:
            return self.recording.live_transcript.strip()
        return self.recording.transcript

    async def start_recording(self) -> bool:
        if self.is_active:
            logger.info("start_recording ignored | already active")
            return False

        try:
            handle = await self.microphone.acquire()
        except Exception as exc:
            logger.warning("microphone acquisition failed | err=%s", exc)
            raise CaptureError("Could not access microphone.") from exc

        # Re-record replaces whatever the previous attempt captured.
        recording = Recording(started_at=self._clock())
        self.recording = recording
        self._handle = handle
        self.state = CaptureState.LISTENING

        self._audio_task = asyncio.create_task(self._pump_audio(handle, recording))
        if self.recognizer is not None:
            self._guard = RecognitionRestartGuard(
                self.max_restarts,
                should_restart=lambda: recording.is_active,
            )
            self._recognition_task = asyncio.create_task(self._recognize(recording, self._guard))
        else:
            self._guard = None
            logger.info("no recognizer configured; transcript must be typed")

        logger.info("recording started | language=%s", self.language)
        return True

    async def stop_recording(self) -> Recording | None:
        recording = self.recording
        if recording is None or not recording.is_active:
            return recording

        recording.is_active = False
        recording.stopped_at = self._clock()
        if self._guard is not None:
            self._guard.stop()

        await self._teardown()

        recording.audio = b"".join(recording.audio_chunks)
        recording.audio_chunks.clear()
        recording.transcript = recording.live_transcript.strip()
        self.state = CaptureState.STOPPED

        logger.info(
            "recording stopped | elapsed=%ss audio_bytes=%s restarts=%s",
            recording.elapsed_seconds(self._clock()),
            len(recording.audio),
            self.restart_count,
        )
        return recording

    def edit_transcript(self, text: str) -> str:
        if self.recording is None:
            raise CaptureError("There is no recorded answer to edit.")
        if self.recording.is_active:
            raise CaptureError("Stop recording before editing the transcript.")
        self.recording.transcript = str(text or "")
        return self.recording.transcript

    def snapshot(self) -> dict | None:
        if self.recording is None:
            return None
        payload = self.recording.to_dict(self._clock())
        payload["state"] = self.state.value
        return payload

    async def discard(self):
        if self.is_active:
            await self.stop_recording()
        self.recording = None
        self._guard = None
        self.state = CaptureState.IDLE

    async def close(self):
        await self.discard()

    async def _teardown(self):
        recognition_task = self._recognition_task
        self._recognition_task = None
        if recognition_task is not None and not recognition_task.done():
            recognition_task.cancel()
            await asyncio.gather(recognition_task, return_exceptions=True)

        stream = self._stream
        self._stream = None
        if stream is not None:
            await self._close_stream(stream)

        handle = self._handle
        self._handle = None
        if handle is not None:
            try:
                await handle.release()
            except Exception as exc:
                logger.warning("microphone release failed | err=%s", exc)

        audio_task = self._audio_task
        self._audio_task = None
        if audio_task is not None and not audio_task.done():
            try:
                await asyncio.wait_for(audio_task, timeout=AUDIO_DRAIN_TIMEOUT_SEC)
            except asyncio.TimeoutError:
                logger.warning("audio stream did not drain; dropped remaining frames")
            except Exception as exc:
                logger.warning("audio stream ended with error | err=%s", exc)

    async def _pump_audio(self, handle, recording: Recording):
        try:
            async for frame in handle.frames():
                recording.audio_chunks.append(frame)
                stream = self._stream
                if stream is None or not recording.is_active:
                    continue
                try:
                    await stream.send(frame)
                except Exception as exc:
                    logger.warning("recognition send failed | err=%s", exc)
        except Exception as exc:
            logger.warning("audio stream error | err=%s", exc)

    async def _recognize(self, recording: Recording, guard: RecognitionRestartGuard):
        while recording.is_active:
            stream = None
            try:
                stream = await self.recognizer.open(self.language)
                self._stream = stream
                guard.reset_ordering()
                async for result in stream.results():
                    if not recording.is_active:
                        break
                    if not guard.is_in_order(result.start):
                        continue
                    guard.note_result()
                    await self._apply_result(recording, result)
            except Exception as exc:
                logger.warning("recognition error | err=%s", exc)
            finally:
                if self._stream is stream:
                    self._stream = None
                if stream is not None:
                    await self._close_stream(stream)

            if not recording.is_active:
                break

            if not guard.allow_restart():
                logger.error("recognition halted while recording is active")
                break

            await asyncio.sleep(self.restart_delay_sec)

    async def _apply_result(self, recording: Recording, result: RecognitionResult):
        text = str(result.text or "").strip()
        if not text:
            return

        if result.is_final:
            recording.committed_text += text + " "
            recording.interim_text = ""
        else:
            recording.interim_text = text

        if self.on_transcript is None:
            return
        try:
            await self.on_transcript(recording.live_transcript, bool(result.is_final))
        except Exception as exc:
            logger.warning("transcript listener failed | err=%s", exc)

    async def _close_stream(self, stream):
        try:
            await stream.close()
        except Exception as exc:
            logger.warning("recognition stream close failed | err=%s", exc)
