from app.exchange.channel import ExchangeChannel
from app.exchange.scoring import score_transcript

__all__ = ["ExchangeChannel", "score_transcript"]
