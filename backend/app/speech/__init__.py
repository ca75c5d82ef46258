from app.speech.capture import RecognitionResult, TranscriptionCapture
from app.speech.playback import SpeechPlayer

__all__ = ["RecognitionResult", "SpeechPlayer", "TranscriptionCapture"]
