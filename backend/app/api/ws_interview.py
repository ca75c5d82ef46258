import json
import logging
import time

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.api.ws_interview_components import AudioFrameRouter, ClientLink
from app.session.registry import session_registry
from core.config import WS_MAX_AUDIO_FRAME_BYTES, WS_MAX_TEXT_BYTES
from core.logger import log_event

logger = logging.getLogger("ws_interview")

router = APIRouter()


def _utterance_of(control: dict) -> int | None:
    try:
        return int(control["utterance"])
    except (KeyError, TypeError, ValueError):
        return None


@router.websocket("/ws/interview/{session_id}")
async def interview_ws(websocket: WebSocket, session_id: str):
    """
    Live channel for one interview view.

    Binary frames are microphone audio; text frames are small JSON control
    messages. Server events (turns, transcript updates, speaking state and
    synthesized audio) flow back over the same socket.
    """
    item = session_registry.get(session_id)
    if not item:
        await websocket.close(code=1008, reason="Unknown interview session")
        return

    session = item["session"]
    microphone = item.get("microphone")
    emitter = item.get("emitter")

    await websocket.accept()
    log_event("ws_interview", "connect", session_id)

    link = ClientLink(websocket, session_id)
    if emitter is not None:
        emitter.attach(link)
    if microphone is not None:
        microphone.connect()
    frames = AudioFrameRouter(
        push_fn=microphone.push if microphone is not None else (lambda frame: None),
        max_frame_bytes=WS_MAX_AUDIO_FRAME_BYTES,
    )

    async def send_snapshot():
        await link.send_json({"type": "snapshot", "session_id": session_id, "snapshot": session.snapshot()})

    await send_snapshot()

    reason = "client_disconnect"
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            audio = message.get("bytes")
            if audio:
                if not frames.route(audio):
                    logger.warning("audio frame dropped | session_id=%s bytes=%s", session_id, len(audio))
                continue

            raw = str(message.get("text") or "")
            if not raw:
                continue
            if len(raw.encode("utf-8")) > WS_MAX_TEXT_BYTES:
                logger.warning("control message too large | session_id=%s", session_id)
                reason = "message_too_large"
                break

            try:
                control = json.loads(raw)
            except ValueError:
                logger.warning("control message is not JSON | session_id=%s", session_id)
                continue

            kind = str((control or {}).get("type") or "").strip().lower() if isinstance(control, dict) else ""
            if kind == "ping":
                await link.send_json({"type": "pong", "session_id": session_id, "ts": time.time()})
            elif kind == "snapshot":
                await send_snapshot()
            elif kind == "playback_ended":
                await session.playback_ended(_utterance_of(control))
            else:
                log_event("ws_interview", "message_ignored", session_id, message_type=kind or "unknown")
    except WebSocketDisconnect:
        pass
    finally:
        last_client = emitter.detach(link) if emitter is not None else True
        if last_client:
            # Leaving the view must not keep the microphone or speech alive.
            await session.release_media()
            if microphone is not None:
                await microphone.disconnect()
            session_registry.mark_inactive(session_id)
        log_event("ws_interview", "disconnect", session_id, reason=reason, last_client=last_client)
        await link.close()
