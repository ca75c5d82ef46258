from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple

from core.state import Speaker
from app.interview.errors import InvalidConfigError

DIFFICULTY_LEVELS = ("Easy", "Medium", "Hard")


@dataclass
class InterviewConfig:
    role: str
    company: str
    job_description: str
    resume_text: str
    difficulty: str = "Medium"
    focus_area: str = ""

    def validate(self) -> "InterviewConfig":
        required = {
            "role": self.role,
            "company": self.company,
            "job_description": self.job_description,
            "resume_text": self.resume_text,
            "difficulty": self.difficulty,
        }
        missing = [name for name, value in required.items() if not str(value or "").strip()]
        if missing:
            raise InvalidConfigError(f"Missing required interview settings: {', '.join(missing)}")

        difficulty = str(self.difficulty).strip().capitalize()
        if difficulty not in DIFFICULTY_LEVELS:
            raise InvalidConfigError(f"Unknown difficulty '{self.difficulty}'")

        self.role = str(self.role).strip()
        self.company = str(self.company).strip()
        self.job_description = str(self.job_description).strip()
        self.resume_text = str(self.resume_text).strip()
        self.difficulty = difficulty
        self.focus_area = str(self.focus_area or "").strip()
        return self

    def to_dict(self) -> dict:
        return {
            "role": self.role,
            "company": self.company,
            "difficulty": self.difficulty,
            "focus_area": self.focus_area,
            "has_job_description": bool(self.job_description),
            "has_resume": bool(self.resume_text),
        }


@dataclass
class Turn:
    speaker: Speaker
    text: str
    timestamp: float = field(default_factory=time.time)
    turn_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def label(self) -> str:
        return "Interviewer" if self.speaker == Speaker.INTERVIEWER else "You"

    def to_dict(self) -> dict:
        return {
            "turn_id": self.turn_id,
            "speaker": self.speaker.value,
            "text": self.text,
            "timestamp": self.timestamp,
        }


@dataclass
class Recording:
    """
    One answer being captured. Lives from start_recording until the
    answer is submitted or re-recorded.
    """
    started_at: float
    stopped_at: Optional[float] = None
    is_active: bool = True

    committed_text: str = ""  # finalized recognition segments
    interim_text: str = ""  # latest non-final hypothesis
    transcript: str = ""  # editable once stopped

    audio_chunks: List[bytes] = field(default_factory=list)
    audio: Optional[bytes] = None

    @property
    def live_transcript(self) -> str:
        return f"{self.committed_text}{self.interim_text}"

    def elapsed_seconds(self, now: float) -> int:
        end = self.stopped_at if self.stopped_at is not None else now
        return max(0, int(end - self.started_at))

    def to_dict(self, now: float) -> dict:
        return {
            "is_active": self.is_active,
            "elapsed_seconds": self.elapsed_seconds(now),
            "live_transcript": self.live_transcript,
            "transcript": self.transcript,
            "audio_bytes": len(self.audio or b""),
        }


@dataclass(frozen=True)
class FeedbackReport:
    scores: Mapping[str, int] = field(default_factory=dict)
    strengths: Tuple[str, ...] = ()
    improvements: Tuple[str, ...] = ()
    summary: str = ""

    def __post_init__(self):
        # Frozen all the way down: the report never changes once produced.
        object.__setattr__(self, "scores", MappingProxyType(dict(self.scores)))
        object.__setattr__(self, "strengths", tuple(self.strengths))
        object.__setattr__(self, "improvements", tuple(self.improvements))

    def to_dict(self) -> dict:
        return {
            "scores": dict(self.scores),
            "strengths": list(self.strengths),
            "improvements": list(self.improvements),
            "summary": self.summary,
        }
