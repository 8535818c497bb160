"""In-process authentication context."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

_logger = logging.getLogger(__name__)


class AuthEventType(Enum):
    """Authentication state transitions."""

    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"


@dataclass(frozen=True)
class AuthEvent:
    """A transition emitted by the auth context."""

    type: AuthEventType
    user_id: str | None = None


AuthListener = Callable[[AuthEvent], Awaitable[None]]


class AuthContext(Protocol):
    """Source of authentication state transitions."""

    @property
    def current_user_id(self) -> str | None:
        """Return the signed-in user id, if any."""

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """Register a listener and return a callable that removes it."""


@dataclass
class AuthEventBus(AuthContext):
    """Auth context fed by the host application's sign-in flow."""

    _user_id: str | None = None
    _listeners: list[AuthListener] = field(default_factory=list)

    @property
    def current_user_id(self) -> str | None:
        """Return the signed-in user id, if any."""
        return self._user_id

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """Register a listener and return a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def signed_in(self, user_id: str) -> None:
        """Record a sign-in and notify listeners."""
        self._user_id = user_id
        await self._emit(AuthEvent(type=AuthEventType.SIGNED_IN, user_id=user_id))

    async def signed_out(self) -> None:
        """Record a sign-out and notify listeners."""
        self._user_id = None
        await self._emit(AuthEvent(type=AuthEventType.SIGNED_OUT))

    async def _emit(self, event: AuthEvent) -> None:
        _logger.info("Auth event %s user=%s", event.type.value, event.user_id)
        for listener in list(self._listeners):
            await listener(event)
