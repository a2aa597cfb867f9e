from __future__ import annotations

from collections import defaultdict
from threading import Lock

__all__ = ["ConnectionRegistry"]


class ConnectionRegistry:
    """Live connections per user, maintained on connect and disconnect.

    A user may hold several connections (tabs, devices); the user stays
    online until the last one is removed.
    """

    def __init__(self) -> None:
        self._connections: defaultdict[str, set[str]] = defaultdict(set)
        self._lock = Lock()

    def add(self, user_id: str, connection_id: str) -> None:
        with self._lock:
            self._connections[user_id].add(connection_id)

    def remove(self, user_id: str, connection_id: str | None = None) -> bool:
        """Drop one connection, or all of the user's when ``connection_id`` is None.

        Returns ``True`` if anything was removed.
        """
        with self._lock:
            current = self._connections.get(user_id)
            if not current:
                return False
            if connection_id is None:
                del self._connections[user_id]
                return True
            if connection_id not in current:
                return False
            current.discard(connection_id)
            if not current:
                del self._connections[user_id]
            return True

    def connections_for(self, user_id: str) -> frozenset[str]:
        with self._lock:
            return frozenset(self._connections.get(user_id, ()))

    def is_online(self, user_id: str) -> bool:
        with self._lock:
            return bool(self._connections.get(user_id))

    def online_users(self) -> list[str]:
        with self._lock:
            return sorted(user for user, conns in self._connections.items() if conns)

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)
