import asyncio
import logging

from app.interview.errors import CaptureError

logger = logging.getLogger("app.speech.microphone")

_END_OF_STREAM = None


class StreamMicrophoneHandle:
    def __init__(self, microphone: "StreamMicrophone"):
        self._microphone = microphone
        self._queue: asyncio.Queue = asyncio.Queue()
        self.released = False

    def push(self, frame: bytes):
        if not self.released:
            self._queue.put_nowait(bytes(frame))

    async def frames(self):
        while True:
            frame = await self._queue.get()
            if frame is _END_OF_STREAM:
                return
            yield frame

    async def release(self):
        if self.released:
            return
        self.released = True
        self._queue.put_nowait(_END_OF_STREAM)
        self._microphone._on_release(self)


class StreamMicrophone:
    """
    Microphone fed by a client connection.

    Audio frames pushed by the client are delivered only while a handle is
    held; at most one handle exists at a time.
    """

    def __init__(self):
        self._connected = False
        self._handle: StreamMicrophoneHandle | None = None

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def in_use(self) -> bool:
        return self._handle is not None

    def connect(self):
        self._connected = True

    async def disconnect(self):
        self._connected = False
        if self._handle is not None:
            await self._handle.release()

    def push(self, frame: bytes):
        if self._handle is not None and frame:
            self._handle.push(frame)

    async def acquire(self) -> StreamMicrophoneHandle:
        if not self._connected:
            raise CaptureError("No microphone stream is connected")
        if self._handle is not None:
            raise CaptureError("Microphone is already in use")
        self._handle = StreamMicrophoneHandle(self)
        logger.info("microphone acquired")
        return self._handle

    def _on_release(self, handle: StreamMicrophoneHandle):
        if self._handle is handle:
            self._handle = None
            logger.info("microphone released")
