# backend/core/state.py

from enum import Enum


class InterviewPhase(str, Enum):
    SETUP = "setup"
    INTERVIEWING = "interviewing"
    FEEDBACK = "feedback"


class Speaker(str, Enum):
    INTERVIEWER = "interviewer"
    CANDIDATE = "candidate"


class CaptureState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    STOPPED = "stopped"


class ErrorKind(str, Enum):
    SETUP = "setup"
    TURN = "turn"
    CAPTURE = "capture"
    FEEDBACK = "feedback"
