from __future__ import annotations

import time
from threading import Lock


class SessionRegistry:
    def __init__(self):
        self._lock = Lock()
        self._sessions: dict[str, dict] = {}

    def register(self, session_id: str, session, microphone=None, emitter=None) -> None:
        with self._lock:
            self._sessions[session_id] = {
                "session": session,
                "microphone": microphone,
                "emitter": emitter,
                "created_at": time.time(),
                "updated_at": time.time(),
                "active": True,
            }

    def touch(self, session_id: str) -> None:
        with self._lock:
            if session_id in self._sessions:
                self._sessions[session_id]["updated_at"] = time.time()
                self._sessions[session_id]["active"] = True

    def mark_inactive(self, session_id: str) -> None:
        with self._lock:
            if session_id in self._sessions:
                self._sessions[session_id]["active"] = False
                self._sessions[session_id]["updated_at"] = time.time()

    def get(self, session_id: str) -> dict | None:
        with self._lock:
            item = self._sessions.get(session_id)
            return dict(item) if item else None

    def get_session(self, session_id: str):
        item = self.get(session_id)
        return item["session"] if item else None

    def remove(self, session_id: str):
        with self._lock:
            item = self._sessions.pop(session_id, None)
            return item["session"] if item else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def drain(self) -> list:
        with self._lock:
            items = list(self._sessions.values())
            self._sessions.clear()
        return [item["session"] for item in items]

    def cleanup_inactive(self, ttl_sec: float) -> list:
        """Drop sessions idle longer than ttl; returns them so the caller can close them."""
        now_ts = time.time()
        cutoff = now_ts - max(30.0, float(ttl_sec or 900.0))
        removed = []
        with self._lock:
            for session_id, data in list(self._sessions.items()):
                if bool((data or {}).get("active", False)):
                    continue
                updated_at = float((data or {}).get("updated_at") or 0.0)
                if updated_at <= cutoff:
                    item = self._sessions.pop(session_id, None)
                    if item:
                        removed.append(item["session"])
        return removed


session_registry = SessionRegistry()
