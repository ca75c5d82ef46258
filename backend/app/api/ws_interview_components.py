from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List

from starlette.websockets import WebSocketState

logger = logging.getLogger("ws_interview")


PushFn = Callable[[bytes], None]


class ClientLink:
    """Serialized sends to one client socket; failures are logged, never raised."""

    def __init__(self, websocket, session_id: str):
        self.websocket = websocket
        self.session_id = session_id
        self._lock = asyncio.Lock()

    @property
    def connected(self) -> bool:
        return self.websocket.client_state == WebSocketState.CONNECTED

    async def send_json(self, payload: dict) -> None:
        if not self.connected:
            return
        try:
            encoded = json.dumps(payload, default=str)
        except (TypeError, ValueError) as exc:
            logger.warning("ws payload encode failed | session_id=%s err=%s", self.session_id, exc)
            return
        try:
            async with self._lock:
                await self.websocket.send_text(encoded)
        except Exception as exc:
            logger.warning("ws send failed | session_id=%s err=%s", self.session_id, exc)

    async def send_bytes(self, audio: bytes) -> None:
        if not self.connected:
            return
        try:
            async with self._lock:
                await self.websocket.send_bytes(audio)
        except Exception as exc:
            logger.warning("ws audio send failed | session_id=%s err=%s", self.session_id, exc)

    async def close(self) -> None:
        if not self.connected:
            return
        try:
            await self.websocket.close()
        except RuntimeError:
            pass


@dataclass
class SessionEventEmitter:
    """
    Fans session events out to the connected client, if any.

    Several sockets may be attached to one session (a reconnect racing the
    old socket, a second tab). Events go to the most recently attached one;
    when it leaves, the previous socket takes over again.
    """

    session_id: str
    links: List[ClientLink] = field(default_factory=list)

    @property
    def attached(self) -> bool:
        return bool(self.links)

    def attach(self, link: ClientLink) -> None:
        self.links.append(link)

    def detach(self, link: ClientLink) -> bool:
        """Returns True when the last attached socket has left."""
        if link in self.links:
            self.links.remove(link)
        return not self.links

    async def emit(self, payload: dict) -> None:
        if not self.links:
            return
        await self.links[-1].send_json(dict(payload, session_id=self.session_id))

    async def emit_audio(self, audio: bytes) -> None:
        if not self.links:
            return
        await self.links[-1].send_bytes(audio)

    async def emit_transcript(self, text: str, is_final: bool) -> None:
        await self.emit({
            "type": "transcript",
            "text": text,
            "is_final": is_final,
        })

    async def emit_speaking(self, speaking: bool, text: str, utterance: int) -> None:
        await self.emit({
            "type": "speaking",
            "active": speaking,
            "utterance": utterance,
        })

    async def emit_speech_stop(self) -> None:
        # The client drops any queued or playing interviewer audio.
        await self.emit({"type": "speech_stop", "active": False})


@dataclass
class AudioFrameRouter:
    push_fn: PushFn
    max_frame_bytes: int = 65536

    def route(self, frame: bytes) -> bool:
        if not frame or len(frame) > self.max_frame_bytes:
            return False
        self.push_fn(frame)
        return True
