import logging
import time
import uuid
from typing import Awaitable, Callable, Optional

from core.logger import log_event
from core.state import ErrorKind, InterviewPhase, Speaker
from app.interview.errors import (
    CaptureError,
    ExchangeError,
    InvalidTransitionError,
    SessionError,
)
from app.interview.feedback import parse_feedback_report
from app.interview.models import FeedbackReport, InterviewConfig, Turn
from app.interview.prompts import (
    OPENING_FALLBACK,
    OPENING_MESSAGE,
    REPLY_FALLBACK,
    build_feedback_prompt,
    build_interviewer_directive,
)

logger = logging.getLogger("app.interview.session")

EMPTY_ANSWER_WARNING = "Please provide an answer (text or audio) before submitting."
BUSY_WARNING = "Please wait for the interviewer to respond."

ScorerFn = Callable[[str], Awaitable[str]]
EventFn = Callable[[dict], Awaitable[None]]


class MockInterviewSession:
    """
    One live mock interview: setup -> interviewing -> feedback.

    Remote failures never escape this class; they are logged and kept in
    ``error`` for the view. Only misuse (bad config, illegal transition)
    raises.
    """

    def __init__(
        self,
        channel_factory: Callable[[], object],
        scorer: ScorerFn,
        capture=None,
        player=None,
        session_id: str | None = None,
        on_event: Optional[EventFn] = None,
    ):
        self.session_id = session_id or str(uuid.uuid4())
        self.channel_factory = channel_factory
        self.scorer = scorer
        self.capture = capture
        self.player = player
        self.on_event = on_event

        self.phase = InterviewPhase.SETUP
        self.config: InterviewConfig | None = None
        self.turns: list[Turn] = []
        self.channel = None
        self.feedback: FeedbackReport | None = None
        self.feedback_pending = False
        self.error: SessionError | None = None
        self.warning: str | None = None
        self.is_processing = False
        self.created_at = time.time()
        self._generation = 0

    # ---------- views ----------

    @property
    def current_question(self) -> str:
        for turn in reversed(self.turns):
            if turn.speaker == Speaker.INTERVIEWER:
                return turn.text
        return ""

    def transcript_text(self) -> str:
        return "\n".join(f"{turn.label}: {turn.text}" for turn in self.turns)

    def snapshot(self) -> dict:
        recording = self.capture.snapshot() if self.capture is not None else None

        return {
            "session_id": self.session_id,
            "phase": self.phase.value,
            "config": self.config.to_dict() if self.config else None,
            "turns": [turn.to_dict() for turn in self.turns],
            "current_question": self.current_question,
            "is_processing": self.is_processing,
            "recording": recording,
            "is_speaking": bool(self.player and self.player.is_speaking),
            "muted": bool(self.player and self.player.muted),
            "feedback": self.feedback.to_dict() if self.feedback else None,
            "feedback_pending": self.feedback_pending,
            "error": self.error.to_dict() if self.error else None,
            "warning": self.warning,
        }

    # ---------- transitions ----------

    async def enter_interviewing(self, config: InterviewConfig) -> Turn | None:
        if self.phase != InterviewPhase.SETUP:
            raise InvalidTransitionError(f"Cannot start an interview from '{self.phase.value}'")
        if self.is_processing:
            self.warning = BUSY_WARNING
            return None

        config.validate()
        self.config = config
        self.error = None
        self.warning = None

        channel = self.channel_factory()
        directive = build_interviewer_directive(config)
        self._log("interview_starting", difficulty=config.difficulty, directive=directive)

        generation = self._generation
        self.is_processing = True
        try:
            reply = await channel.initiate(directive, OPENING_MESSAGE)
        except ExchangeError as exc:
            logger.warning("interview setup failed | session=%s err=%s", self.session_id, exc)
            channel.close()
            await self._fail(ErrorKind.SETUP, "Failed to start the interview session.", exc)
            return None
        finally:
            self.is_processing = False

        if generation != self._generation:
            channel.close()
            logger.info("opening reply dropped | session=%s", self.session_id)
            return None

        self.channel = channel
        self.turns = []
        self.phase = InterviewPhase.INTERVIEWING
        await self._emit({"type": "phase", "phase": self.phase.value})

        turn = await self._append_turn(Speaker.INTERVIEWER, reply or OPENING_FALLBACK)
        self._speak(turn.text)
        self._log("interview_started", channel_id=getattr(channel, "channel_id", None))
        return turn

    async def submit_answer(self, text: str | None = None) -> Turn | None:
        if self.phase != InterviewPhase.INTERVIEWING:
            raise InvalidTransitionError(f"Cannot submit an answer during '{self.phase.value}'")
        if self.is_processing:
            self.warning = BUSY_WARNING
            return None

        if text is None and self.capture is not None:
            if self.capture.is_active:
                await self.capture.stop_recording()
            text = self.capture.transcript

        answer = str(text or "").strip()
        if not answer:
            self.warning = EMPTY_ANSWER_WARNING
            return None

        self.warning = None
        self.error = None
        if self.player is not None:
            await self.player.stop()

        candidate_turn = await self._append_turn(Speaker.CANDIDATE, answer)

        channel = self.channel
        generation = self._generation
        self.is_processing = True
        try:
            reply = await channel.send(answer)
        except ExchangeError as exc:
            logger.warning("answer exchange failed | session=%s err=%s", self.session_id, exc)
            if self._is_stale(generation):
                return None
            # Roll back so a retry of the same answer does not duplicate it.
            if self.turns and self.turns[-1] is candidate_turn:
                self.turns.pop()
                await self._emit({"type": "turn_removed", "turn_id": candidate_turn.turn_id})
            await self._fail(ErrorKind.TURN, "Failed to send answer. Please try again.", exc)
            return None
        finally:
            self.is_processing = False

        if self._is_stale(generation):
            logger.info("reply dropped after the interview moved on | session=%s", self.session_id)
            return None

        if self.capture is not None:
            await self.capture.discard()

        turn = await self._append_turn(Speaker.INTERVIEWER, reply or REPLY_FALLBACK)
        self._speak(turn.text)
        self._log("answer_submitted", turn_count=len(self.turns), answer=answer)
        return turn

    async def end_session(self) -> FeedbackReport | None:
        if self.phase != InterviewPhase.INTERVIEWING:
            raise InvalidTransitionError(f"Cannot end the interview from '{self.phase.value}'")

        if self.player is not None:
            await self.player.stop()
        if self.capture is not None:
            await self.capture.discard()
        if self.channel is not None:
            self.channel.close()

        self._generation += 1
        self.phase = InterviewPhase.FEEDBACK
        self.warning = None
        self._log("interview_ended", turn_count=len(self.turns))
        await self._emit({"type": "phase", "phase": self.phase.value})

        return await self._generate_feedback()

    async def retry_feedback(self) -> FeedbackReport | None:
        if self.phase != InterviewPhase.FEEDBACK:
            raise InvalidTransitionError(f"Feedback is not available during '{self.phase.value}'")
        if self.feedback is not None or self.feedback_pending:
            return self.feedback
        return await self._generate_feedback()

    async def restart(self):
        self._generation += 1
        await self._release_resources()
        self.channel = None
        self.config = None
        self.turns = []
        self.feedback = None
        self.feedback_pending = False
        self.error = None
        self.warning = None
        self.is_processing = False
        self.phase = InterviewPhase.SETUP
        self._log("interview_restarted")
        await self._emit({"type": "phase", "phase": self.phase.value})

    async def close(self):
        self._generation += 1
        await self._release_resources()
        self._log("session_closed", phase=self.phase.value)

    # ---------- recording ----------

    async def start_recording(self) -> bool:
        if self.phase != InterviewPhase.INTERVIEWING:
            raise InvalidTransitionError(f"Cannot record during '{self.phase.value}'")
        if self.capture is None:
            raise CaptureError("Recording is not available for this session.")

        if self.player is not None:
            await self.player.stop()
        try:
            started = await self.capture.start_recording()
        except CaptureError as exc:
            await self._fail(ErrorKind.CAPTURE, str(exc), exc)
            raise
        self.error = None
        return started

    async def stop_recording(self):
        if self.capture is None:
            return None
        return await self.capture.stop_recording()

    def edit_transcript(self, text: str) -> str:
        if self.capture is None:
            raise CaptureError("Recording is not available for this session.")
        return self.capture.edit_transcript(text)

    def set_muted(self, muted: bool) -> bool:
        if self.player is None:
            return bool(muted)
        return self.player.set_muted(muted)

    async def playback_ended(self, utterance: int | None = None) -> bool:
        if self.player is None:
            return False
        return await self.player.playback_ended(utterance)

    # ---------- internals ----------

    async def _generate_feedback(self) -> FeedbackReport | None:
        prompt = build_feedback_prompt(list(self.turns))
        generation = self._generation
        self.feedback_pending = True
        self.error = None
        try:
            raw = await self.scorer(prompt)
        except ExchangeError as exc:
            if generation != self._generation:
                return None
            logger.warning("feedback generation failed | session=%s err=%s", self.session_id, exc)
            await self._fail(ErrorKind.FEEDBACK, "Failed to generate feedback.", exc)
            return None
        finally:
            self.feedback_pending = False

        if generation != self._generation:
            logger.info("feedback dropped after restart | session=%s", self.session_id)
            return None

        report = parse_feedback_report(raw)
        if report is None:
            await self._fail(ErrorKind.FEEDBACK, "Failed to load feedback. Please try again.")
            return None

        self.feedback = report
        self._log("feedback_ready", scores=dict(report.scores))
        await self._emit({"type": "feedback", "feedback": report.to_dict()})
        return report

    async def _append_turn(self, speaker: Speaker, text: str) -> Turn:
        turn = Turn(speaker=speaker, text=text)
        self.turns.append(turn)
        await self._emit({"type": "turn", "turn": turn.to_dict()})
        return turn

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation or self.phase != InterviewPhase.INTERVIEWING

    def _speak(self, text: str):
        if self.player is not None:
            self.player.speak(text)

    async def release_media(self):
        """Silence playback and give the microphone back."""
        if self.player is not None:
            await self.player.stop()
        if self.capture is not None:
            await self.capture.close()

    async def _release_resources(self):
        await self.release_media()
        if self.channel is not None:
            self.channel.close()

    async def _fail(self, kind: ErrorKind, message: str, exc: Exception | None = None):
        self.error = SessionError(kind=kind, message=message)
        self._log("error", level=logging.WARNING, kind=kind.value, detail=str(exc) if exc else None)
        await self._emit({"type": "error", "error": self.error.to_dict()})

    async def _emit(self, payload: dict):
        if self.on_event is None:
            return
        try:
            await self.on_event(dict(payload, session_id=self.session_id))
        except Exception as exc:
            logger.warning("session event listener failed | err=%s", exc)

    def _log(self, event: str, level: int = logging.INFO, **fields):
        log_event("interview_session", event, self.session_id, level=level, **fields)
