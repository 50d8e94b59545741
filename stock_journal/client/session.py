from __future__ import annotations

import threading
from typing import Callable, List, Optional

from stock_journal.models import Session

# Called with the new session (or None) and the sequence number of that change.
Subscriber = Callable[[Optional[Session], int], None]


def _debug(msg: str) -> None:
    print(f"[session] {msg}")


class SessionState:
    """The current identity of this process, with change notifications.

    Lifecycle:
      - initialize(fetch_current): ask the identity provider once at startup
      - set_session(session):      after sign-in / sign-up
      - clear():                   on sign-out

    subscribe() immediately replays the current value to the new subscriber, then
    notifies it on every change until the returned unsubscribe callable is called.

    Every change gets a sequence number, assigned under the lock. Callbacks run
    outside the lock, so two changes may reach a subscriber out of order; the
    sequence number lets it drop the older one.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._session: Optional[Session] = None
        self._initialized = False
        self._seq = 0
        self._subscribers: List[Subscriber] = []

    @property
    def session(self) -> Optional[Session]:
        with self._lock:
            return self._session

    @property
    def user_id(self) -> Optional[str]:
        s = self.session
        return s.user_id if s is not None else None

    @property
    def initialized(self) -> bool:
        with self._lock:
            return self._initialized

    def initialize(self, fetch_current: Callable[[], Optional[Session]]) -> Optional[Session]:
        try:
            current = fetch_current()
        except Exception as e:
            _debug(f"Could not restore session, starting signed out: {e}")
            current = None
        self._publish(current, initialized=True)
        return current

    def set_session(self, session: Session) -> None:
        self._publish(session, initialized=True)

    def clear(self) -> None:
        self._publish(None, initialized=True)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(callback)
            current = self._session
            seq = self._seq

        callback(current, seq)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return _unsubscribe

    def _publish(self, session: Optional[Session], *, initialized: bool) -> None:
        with self._lock:
            self._session = session
            self._initialized = self._initialized or initialized
            self._seq += 1
            seq = self._seq
            subscribers = list(self._subscribers)

        # Callbacks run outside the lock so they may read the state back.
        for cb in subscribers:
            cb(session, seq)
