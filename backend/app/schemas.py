from pydantic import BaseModel, Field


class StartInterviewRequest(BaseModel):
    role: str
    company: str
    job_description: str
    resume_text: str
    difficulty: str = "Medium"
    focus_area: str | None = None


class SubmitAnswerRequest(BaseModel):
    text: str | None = None


class EditTranscriptRequest(BaseModel):
    text: str = ""


class MuteRequest(BaseModel):
    muted: bool = True


class TurnResponse(BaseModel):
    turn_id: str
    speaker: str
    text: str
    timestamp: float


class FeedbackResponse(BaseModel):
    scores: dict[str, int] = Field(default_factory=dict)
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    summary: str = ""


class SessionErrorResponse(BaseModel):
    kind: str
    message: str


class SessionSnapshotResponse(BaseModel):
    session_id: str
    phase: str
    config: dict | None = None
    turns: list[TurnResponse] = Field(default_factory=list)
    current_question: str = ""
    is_processing: bool = False
    recording: dict | None = None
    is_speaking: bool = False
    muted: bool = False
    feedback: FeedbackResponse | None = None
    feedback_pending: bool = False
    error: SessionErrorResponse | None = None
    warning: str | None = None
