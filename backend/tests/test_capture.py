import pytest

from app.interview.errors import CaptureError
from app.speech.capture import TranscriptionCapture
from app.speech.microphone import StreamMicrophone
from core.state import CaptureState
from fakes import FakeMicrophone, FakeRecognizer, final, interim, wait_until


def _capture(microphone, recognizer=None, **kwargs):
    kwargs.setdefault("restart_delay_sec", 0)
    return TranscriptionCapture(microphone=microphone, recognizer=recognizer, language="en-US", **kwargs)


@pytest.mark.asyncio
async def test_capture_accumulates_final_segments_and_keeps_latest_interim():
    microphone = FakeMicrophone()
    recognizer = FakeRecognizer([interim("I am"), final("I am a backend"), interim("engin")])
    updates = []

    async def on_transcript(text, is_final):
        updates.append((text, is_final))

    capture = _capture(microphone, recognizer, on_transcript=on_transcript)
    assert await capture.start_recording() is True
    assert capture.state == CaptureState.LISTENING

    await wait_until(lambda: capture.recording.live_transcript == "I am a backend engin")
    assert updates == [
        ("I am", False),
        ("I am a backend ", True),
        ("I am a backend engin", False),
    ]

    microphone.handle.queue.put_nowait(b"\x01\x02")
    microphone.handle.queue.put_nowait(b"\x03")
    await wait_until(lambda: len(capture.recording.audio_chunks) == 2)

    recording = await capture.stop_recording()
    assert recording.is_active is False
    assert recording.transcript == "I am a backend engin"
    assert recording.audio == b"\x01\x02\x03"
    assert recognizer.streams[0].sent == [b"\x01\x02", b"\x03"]
    assert recognizer.streams[0].closed is True
    assert capture.state == CaptureState.STOPPED
    assert microphone.held == 0


@pytest.mark.asyncio
async def test_start_while_active_does_not_acquire_microphone_twice():
    microphone = FakeMicrophone()
    capture = _capture(microphone, FakeRecognizer([]))

    assert await capture.start_recording() is True
    assert await capture.start_recording() is False
    assert microphone.acquire_count == 1

    await capture.stop_recording()
    assert microphone.held == 0


@pytest.mark.asyncio
async def test_microphone_failure_raises_capture_error():
    capture = _capture(FakeMicrophone(fail=True))

    with pytest.raises(CaptureError, match="Could not access microphone"):
        await capture.start_recording()

    assert capture.recording is None
    assert capture.state == CaptureState.IDLE
    assert capture.is_active is False


@pytest.mark.asyncio
async def test_stream_microphone_requires_connection():
    microphone = StreamMicrophone()
    capture = _capture(microphone)

    with pytest.raises(CaptureError):
        await capture.start_recording()

    microphone.connect()
    assert await capture.start_recording() is True
    assert microphone.in_use is True

    microphone.push(b"\x00" * 320)
    await wait_until(lambda: len(capture.recording.audio_chunks) == 1)

    await capture.stop_recording()
    assert microphone.in_use is False


@pytest.mark.asyncio
async def test_recognition_restarts_when_it_ends_during_recording():
    recognizer = FakeRecognizer([final("first part")], [final("second part")])
    capture = _capture(FakeMicrophone(), recognizer)

    await capture.start_recording()
    await wait_until(lambda: capture.transcript == "first part second part")

    assert len(recognizer.streams) == 2
    assert recognizer.streams[0].closed is True
    assert capture.restart_count == 1

    await capture.stop_recording()
    assert capture.transcript == "first part second part"


@pytest.mark.asyncio
async def test_recognition_restarts_are_bounded():
    recognizer = FakeRecognizer(fail_open=True)
    capture = _capture(FakeMicrophone(), recognizer, max_restarts=3)

    await capture.start_recording()
    await wait_until(lambda: capture._recognition_task.done())

    assert len(recognizer.languages) == 4
    assert capture.restart_count == 3
    # The recording itself stays usable for a typed answer.
    assert capture.is_active is True
    await capture.stop_recording()


@pytest.mark.asyncio
async def test_no_restart_after_stop():
    recognizer = FakeRecognizer([final("hello")])
    capture = _capture(FakeMicrophone(), recognizer)

    await capture.start_recording()
    await wait_until(lambda: capture.transcript == "hello")
    await capture.stop_recording()

    assert len(recognizer.streams) == 1
    assert capture.restart_count == 0


@pytest.mark.asyncio
async def test_transcript_is_editable_only_after_stop():
    capture = _capture(FakeMicrophone(), FakeRecognizer([final("I like pyhton")]))

    with pytest.raises(CaptureError):
        capture.edit_transcript("nothing recorded")

    await capture.start_recording()
    await wait_until(lambda: capture.transcript == "I like pyhton")
    with pytest.raises(CaptureError):
        capture.edit_transcript("too early")

    await capture.stop_recording()
    assert capture.edit_transcript("I like Python") == "I like Python"
    assert capture.transcript == "I like Python"
    assert capture.snapshot()["transcript"] == "I like Python"


@pytest.mark.asyncio
async def test_rerecord_replaces_previous_attempt_and_discard_resets():
    microphone = FakeMicrophone()
    recognizer = FakeRecognizer([final("first try")])
    capture = _capture(microphone, recognizer)

    await capture.start_recording()
    await wait_until(lambda: capture.transcript == "first try")
    await capture.stop_recording()

    await capture.start_recording()
    assert capture.transcript == ""
    assert microphone.acquire_count == 2

    await capture.discard()
    assert capture.recording is None
    assert capture.snapshot() is None
    assert capture.state == CaptureState.IDLE
    assert microphone.held == 0
