"""Per-session action serialization - one mutating operation in flight per address"""

from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from credit_gateway.domain.exceptions import ActionInProgress
from credit_gateway.domain.models import ActionKind
from credit_gateway.infrastructure.observability.metrics import action_conflict_counter
from credit_gateway.utils.addresses import normalize_address


class ActionSerializer:
    """Busy flag for one session, tagged with the running action"""

    def __init__(self) -> None:
        self.current: Optional[ActionKind] = None

    @property
    def busy(self) -> bool:
        return self.current is not None

    def try_begin(self, kind: ActionKind) -> bool:
        if self.current is not None:
            return False
        self.current = kind
        return True

    def end(self) -> None:
        self.current = None

    @contextmanager
    def guard(self, kind: ActionKind) -> Iterator[None]:
        """
        Hold the session for one action.

        Raises:
            ActionInProgress: If another action holds the session; never queues
        """
        if not self.try_begin(kind):
            action_conflict_counter.labels(action=kind.value).inc()
            raise ActionInProgress(self.current)
        try:
            yield
        finally:
            self.end()


class SessionRegistry:
    """
    One ActionSerializer per connected address.

    Only touched from the event loop and never across an await between check
    and set, so no lock is needed. Idle sessions are dropped on release.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, ActionSerializer] = {}

    def session(self, address: str) -> ActionSerializer:
        key = normalize_address(address)
        serializer = self._sessions.get(key)
        if serializer is None:
            serializer = self._sessions[key] = ActionSerializer()
        return serializer

    def is_busy(self, address: str) -> bool:
        serializer = self._sessions.get(normalize_address(address))
        return serializer is not None and serializer.busy

    def __len__(self) -> int:
        return len(self._sessions)

    @contextmanager
    def guard(self, address: str, kind: ActionKind) -> Iterator[None]:
        key = normalize_address(address)
        serializer = self.session(key)
        try:
            with serializer.guard(kind):
                yield
        finally:
            if not serializer.busy and self._sessions.get(key) is serializer:
                del self._sessions[key]
