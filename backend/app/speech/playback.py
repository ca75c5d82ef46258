import asyncio
import logging
from typing import Awaitable, Callable, Optional

from core.config import QA_MODE, TTS_MODEL, TTS_VOICE
from app.exchange import client as client_module

logger = logging.getLogger("app.speech.playback")

SpeakingFn = Callable[[bool, str, int], Awaitable[None]]
StopFn = Callable[[], Awaitable[None]]
AudioSinkFn = Callable[[bytes], Awaitable[None]]


class OpenAISpeechSynthesizer:
    """
    Text-to-speech through OpenAI; finished audio is handed to ``audio_sink``.
    """

    def __init__(self, audio_sink: AudioSinkFn | None = None, client=None, enabled: bool | None = None,
                 model: str | None = None, voice: str | None = None):
        self.audio_sink = audio_sink
        self._client = client
        self.enabled = (not QA_MODE) if enabled is None else enabled
        self.model = model or TTS_MODEL
        self.voice = voice or TTS_VOICE

    @property
    def plays_remotely(self) -> bool:
        return self.enabled and self.audio_sink is not None

    @property
    def client(self):
        return self._client if self._client is not None else client_module.client

    async def speak(self, text: str) -> None:
        if not self.enabled:
            logger.info("[QA_MODE] speech synthesis skipped | chars=%s", len(text))
            return

        response = await self.client.audio.speech.create(
            model=self.model,
            voice=self.voice,
            input=text,
            response_format="mp3",
        )
        audio = response.content
        if self.audio_sink is not None and audio:
            await self.audio_sink(audio)


class SpeechPlayer:
    """
    Single-utterance speech output.

    ``speak`` cancels whatever is playing before starting. ``muted`` only
    suppresses future calls; it never interrupts an utterance in flight.

    When the synthesizer hands audio to a remote client, the utterance keeps
    playing after synthesis returns; ``is_speaking`` then stays set until the
    client reports ``playback_ended`` or ``stop`` is called.
    """

    def __init__(self, synthesizer, on_speaking: Optional[SpeakingFn] = None, on_stop: Optional[StopFn] = None):
        self.synthesizer = synthesizer
        self.on_speaking = on_speaking
        self.on_stop = on_stop
        self.muted = False
        self.is_speaking = False
        self._task: asyncio.Task | None = None
        self._utterance_seq = 0

    @property
    def utterance(self) -> int:
        return self._utterance_seq

    def set_muted(self, muted: bool) -> bool:
        self.muted = bool(muted)
        logger.info("playback muted=%s", self.muted)
        return self.muted

    def speak(self, text: str) -> asyncio.Task | None:
        text = str(text or "").strip()
        if self.muted or not text:
            return None

        self._cancel_task()
        self._utterance_seq += 1
        self._task = asyncio.create_task(self._play(self._utterance_seq, text))
        return self._task

    async def stop(self):
        """Cancel synthesis and tell the client to silence anything it is playing."""
        self._cancel_task()
        self._utterance_seq += 1
        self.is_speaking = False
        if self.on_stop is None:
            return
        try:
            await self.on_stop()
        except Exception as exc:
            logger.warning("stop listener failed | err=%s", exc)

    async def playback_ended(self, utterance: int | None = None) -> bool:
        if utterance is not None and utterance != self._utterance_seq:
            return False
        if not self.is_speaking:
            return False
        if self._task is not None and not self._task.done():
            return False
        await self._set_speaking(self._utterance_seq, False, "")
        return True

    async def wait(self):
        task = self._task
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    def _cancel_task(self):
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    async def _play(self, seq: int, text: str):
        await self._set_speaking(seq, True, text)
        finished_here = True
        try:
            await self.synthesizer.speak(text)
            finished_here = not getattr(self.synthesizer, "plays_remotely", False)
        except asyncio.CancelledError:
            logger.info("utterance cancelled | seq=%s", seq)
            raise
        except Exception as exc:
            logger.warning("speech synthesis failed | err=%s", exc)
        finally:
            if finished_here:
                await self._set_speaking(seq, False, text)

    async def _set_speaking(self, seq: int, speaking: bool, text: str):
        # A cancelled utterance must not clear the flag of its replacement.
        if seq != self._utterance_seq:
            return
        self.is_speaking = speaking
        if self.on_speaking is None:
            return
        try:
            await self.on_speaking(speaking, text, seq)
        except Exception as exc:
            logger.warning("speaking listener failed | err=%s", exc)
