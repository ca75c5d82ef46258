import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException

from core.state import ErrorKind
from app.interview.errors import CaptureError, InvalidConfigError, InvalidTransitionError
from app.interview.models import InterviewConfig
from app.schemas import (
    EditTranscriptRequest,
    MuteRequest,
    SessionSnapshotResponse,
    StartInterviewRequest,
    SubmitAnswerRequest,
)
from app.session.builder import build_interview_session
from app.session.registry import session_registry

router = APIRouter(prefix="/api/interview", tags=["interview"])
logger = logging.getLogger("app.api.interview")


def get_session_builder():
    return build_interview_session


def _require_session(session_id: str):
    session = session_registry.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Interview session not found")
    session_registry.touch(session_id)
    return session


def _remote_failure(session, kind: ErrorKind):
    error = session.error
    if error is not None and error.kind == kind and session.warning is None:
        raise HTTPException(status_code=502, detail=error.message)


@router.post("/sessions", response_model=SessionSnapshotResponse)
async def create_session(builder=Depends(get_session_builder)):
    session_id = str(uuid.uuid4())
    resources = builder(session_id)
    session = resources["session"]
    session_registry.register(
        session_id,
        session,
        microphone=resources.get("microphone"),
        emitter=resources.get("emitter"),
    )
    logger.info("interview session created | session=%s", session_id)
    return session.snapshot()


@router.get("/sessions/{session_id}", response_model=SessionSnapshotResponse)
async def get_session(session_id: str):
    return _require_session(session_id).snapshot()


@router.get("/sessions/{session_id}/transcript")
async def get_transcript(session_id: str):
    session = _require_session(session_id)
    return {"session_id": session_id, "transcript": session.transcript_text()}


@router.post("/sessions/{session_id}/start", response_model=SessionSnapshotResponse)
async def start_interview(session_id: str, payload: StartInterviewRequest):
    session = _require_session(session_id)
    config = InterviewConfig(
        role=payload.role,
        company=payload.company,
        job_description=payload.job_description,
        resume_text=payload.resume_text,
        difficulty=payload.difficulty,
        focus_area=payload.focus_area or "",
    )
    try:
        turn = await session.enter_interviewing(config)
    except InvalidConfigError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=409, detail=str(exc))

    if turn is None:
        _remote_failure(session, ErrorKind.SETUP)
    return session.snapshot()


@router.post("/sessions/{session_id}/recording/start", response_model=SessionSnapshotResponse)
async def start_recording(session_id: str):
    session = _require_session(session_id)
    try:
        await session.start_recording()
    except (InvalidTransitionError, CaptureError) as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return session.snapshot()


@router.post("/sessions/{session_id}/recording/stop", response_model=SessionSnapshotResponse)
async def stop_recording(session_id: str):
    session = _require_session(session_id)
    await session.stop_recording()
    return session.snapshot()


@router.put("/sessions/{session_id}/recording/transcript", response_model=SessionSnapshotResponse)
async def edit_transcript(session_id: str, payload: EditTranscriptRequest):
    session = _require_session(session_id)
    try:
        session.edit_transcript(payload.text)
    except CaptureError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return session.snapshot()


@router.post("/sessions/{session_id}/answer", response_model=SessionSnapshotResponse)
async def submit_answer(session_id: str, payload: SubmitAnswerRequest | None = None):
    session = _require_session(session_id)
    text = payload.text if payload is not None else None
    try:
        turn = await session.submit_answer(text)
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=409, detail=str(exc))

    if turn is None:
        _remote_failure(session, ErrorKind.TURN)
    return session.snapshot()


@router.post("/sessions/{session_id}/end", response_model=SessionSnapshotResponse)
async def end_interview(session_id: str):
    session = _require_session(session_id)
    try:
        await session.end_session()
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return session.snapshot()


@router.post("/sessions/{session_id}/feedback/retry", response_model=SessionSnapshotResponse)
async def retry_feedback(session_id: str):
    session = _require_session(session_id)
    try:
        await session.retry_feedback()
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return session.snapshot()


@router.post("/sessions/{session_id}/restart", response_model=SessionSnapshotResponse)
async def restart_interview(session_id: str):
    session = _require_session(session_id)
    await session.restart()
    return session.snapshot()


@router.post("/sessions/{session_id}/mute", response_model=SessionSnapshotResponse)
async def set_muted(session_id: str, payload: MuteRequest):
    session = _require_session(session_id)
    session.set_muted(payload.muted)
    return session.snapshot()


@router.delete("/sessions/{session_id}")
async def close_session(session_id: str):
    item = session_registry.get(session_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Interview session not found")

    session_registry.remove(session_id)
    await item["session"].close()
    microphone = item.get("microphone")
    if microphone is not None:
        await microphone.disconnect()
    return {"status": "closed", "session_id": session_id}
