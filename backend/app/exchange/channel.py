import asyncio
import logging
import uuid

from core.config import EXCHANGE_TIMEOUT_SEC, INTERVIEW_MODEL
from app.exchange import client as client_module
from app.interview.errors import (
    ExchangeBusyError,
    ExchangeClosedError,
    ExchangeError,
    ExchangeTimeoutError,
)

logger = logging.getLogger("app.exchange.channel")


class ExchangeChannel:
    """
    Ordered conversation with the remote model for one interview session.

    Calls are strictly sequential: a call made while another one is still
    outstanding is rejected instead of queued. History only grows on success.
    """

    def __init__(self, client=None, model: str | None = None, timeout_sec: float | None = None, temperature: float = 0.7):
        self.channel_id = str(uuid.uuid4())
        self._client = client
        self.model = model or INTERVIEW_MODEL
        self.timeout_sec = float(timeout_sec or EXCHANGE_TIMEOUT_SEC)
        self.temperature = temperature
        self._messages: list[dict] = []
        self._pending = False
        self._closed = False

    @property
    def client(self):
        return self._client if self._client is not None else client_module.client

    @property
    def is_pending(self) -> bool:
        return self._pending

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def history(self) -> list[dict]:
        return [dict(message) for message in self._messages]

    async def initiate(self, system_directive: str, opening_message: str = "Start the interview.") -> str:
        if self._messages:
            raise ExchangeError("Channel already initiated")
        directive = str(system_directive or "").strip()
        if not directive:
            raise ExchangeError("System directive is empty")
        return await self._exchange(opening_message, system_directive=directive)

    async def send(self, text: str) -> str:
        if not self._messages:
            raise ExchangeError("Channel not initiated")
        return await self._exchange(text)

    def close(self) -> None:
        self._closed = True

    async def _exchange(self, text: str, system_directive: str | None = None) -> str:
        if self._closed:
            raise ExchangeClosedError("Channel is closed")
        if self._pending:
            raise ExchangeBusyError("A previous message is still awaiting a reply")

        prefix = [{"role": "system", "content": system_directive}] if system_directive else []
        user_message = {"role": "user", "content": str(text or "")}
        messages = prefix + self._messages + [user_message]

        self._pending = True
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=self.temperature,
                ),
                timeout=self.timeout_sec,
            )
            reply = str(response.choices[0].message.content or "").strip()
        except asyncio.TimeoutError as exc:
            logger.warning("exchange timeout | channel=%s timeout=%.1fs", self.channel_id, self.timeout_sec)
            raise ExchangeTimeoutError("The interviewer took too long to respond.") from exc
        except ExchangeError:
            raise
        except Exception as exc:
            logger.warning("exchange failure | channel=%s err=%s", self.channel_id, exc)
            raise ExchangeError(str(exc) or exc.__class__.__name__) from exc
        finally:
            self._pending = False

        # The remote side keeps no state; the transcript of record lives here.
        self._messages.extend(prefix)
        self._messages.append(user_message)
        self._messages.append({"role": "assistant", "content": reply})
        return reply
