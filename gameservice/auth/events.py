"""Observer channels published by the auth service."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, List, Optional, TypeVar, Union

from ..models import LoginResult, PlayFabError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Subscriber = Callable[..., Union[None, Awaitable[None]]]
ResultHandler = Callable[[Optional[LoginResult]], Union[None, Awaitable[None]]]


class EventChannel(Generic[T]):
    """Ordered list of subscribers for one event.

    Subscribers run in insertion order. Coroutine subscribers are awaited
    before the next one runs. An exception raised by one subscriber is
    logged and the remaining subscribers still run.
    """

    def __init__(self, name: str):
        self.name = name
        self._subscribers: List[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Add ``subscriber`` and return a callable that removes it."""
        self._subscribers.append(subscriber)
        return lambda: self.unsubscribe(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    @property
    def has_subscribers(self) -> bool:
        return bool(self._subscribers)

    def __len__(self) -> int:
        return len(self._subscribers)

    async def emit(self, *payload: Any) -> bool:
        """Deliver ``payload`` to every subscriber.

        :return: False when nobody was subscribed
        """
        if not self._subscribers:
            return False

        for subscriber in list(self._subscribers):
            try:
                outcome = subscriber(*payload)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                logger.exception(f"Subscriber of {self.name} raised")
        return True


@dataclass
class LoginSink:
    """Where a login outcome goes.

    With a direct ``handler`` the outcome is delivered to it alone: the
    result on success, None on failure (the error is logged). Without one,
    outcomes go to the shared ``succeeded`` / ``failed`` channels, and a
    failure nobody listens to is logged.
    """

    succeeded: EventChannel[LoginResult]
    failed: EventChannel[PlayFabError]
    handler: Optional[ResultHandler] = field(default=None)

    async def _call_handler(self, value: Optional[LoginResult]) -> None:
        outcome = self.handler(value)
        if inspect.isawaitable(outcome):
            await outcome

    async def success(self, result: LoginResult) -> None:
        if self.handler is not None:
            await self._call_handler(result)
        else:
            await self.succeeded.emit(result)

    async def failure(self, error: PlayFabError) -> None:
        if self.handler is not None:
            logger.error(error.generate_error_report())
            await self._call_handler(None)
        elif not await self.failed.emit(error):
            logger.error(error.generate_error_report())
