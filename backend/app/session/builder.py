from core.config import QA_MODE
from app.api.ws_interview_components import SessionEventEmitter
from app.exchange import ExchangeChannel, score_transcript
from app.interview.session import MockInterviewSession
from app.speech.capture import TranscriptionCapture
from app.speech.deepgram import DeepgramRecognizer
from app.speech.microphone import StreamMicrophone
from app.speech.playback import OpenAISpeechSynthesizer, SpeechPlayer


def build_interview_session(session_id: str) -> dict:
    """
    Wires one session to its client-facing resources.
    Returns the pieces the registry keeps for the WebSocket endpoint.
    """
    emitter = SessionEventEmitter(session_id=session_id)
    microphone = StreamMicrophone()

    recognizer = DeepgramRecognizer()
    capture = TranscriptionCapture(
        microphone=microphone,
        recognizer=recognizer if recognizer.enabled else None,
        on_transcript=emitter.emit_transcript,
    )
    player = SpeechPlayer(
        synthesizer=OpenAISpeechSynthesizer(audio_sink=emitter.emit_audio, enabled=not QA_MODE),
        on_speaking=emitter.emit_speaking,
        on_stop=emitter.emit_speech_stop,
    )
    session = MockInterviewSession(
        channel_factory=ExchangeChannel,
        scorer=score_transcript,
        capture=capture,
        player=player,
        session_id=session_id,
        on_event=emitter.emit,
    )
    return {
        "session": session,
        "microphone": microphone,
        "emitter": emitter,
    }
