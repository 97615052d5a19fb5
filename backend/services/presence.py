"""In-memory registry of the live connections of each user.

A user is online while at least one connection is registered. The registry
lives as long as the process: after a restart everybody is offline until
their clients reconnect.
"""

import asyncio
import logging
from typing import Any, Protocol

from services.events import OutboundEvent, PresenceStatus
from utils import ratelimited_log

logger = logging.getLogger("pingcode.presence")


class Connection(Protocol):
    async def send_event(self, event: OutboundEvent, data: dict[str, Any]) -> None: ...


class PresenceRegistry:
    def __init__(self):
        # user_id -> live connections (one per device/tab)
        self._connections: dict[int, set[Connection]] = {}
        self._lock = asyncio.Lock()
        # held across the status broadcast so one user's edges go out in order
        self._edge_locks: dict[int, asyncio.Lock] = {}

    def _edge_lock(self, user_id: int) -> asyncio.Lock:
        return self._edge_locks.setdefault(user_id, asyncio.Lock())

    async def register(self, user_id: int, connection: Connection) -> bool:
        """Add a connection; return True when the user just came online"""
        async with self._edge_lock(user_id):
            async with self._lock:
                handles = self._connections.setdefault(user_id, set())
                came_online = not handles
                handles.add(connection)
                total = len(handles)

            logger.info(f"Registered connection | user={user_id} | connections={total}")
            if came_online:
                await self.broadcast(
                    OutboundEvent.user_status,
                    {"userId": user_id, "status": PresenceStatus.online.value},
                )
        return came_online

    async def deregister(self, user_id: int, connection: Connection) -> bool:
        """Remove a connection; return True when it was the user's last one"""
        async with self._edge_lock(user_id):
            async with self._lock:
                handles = self._connections.get(user_id)
                if not handles or connection not in handles:
                    return False
                handles.discard(connection)
                went_offline = not handles
                if went_offline:
                    del self._connections[user_id]

            logger.info(f"Deregistered connection | user={user_id} | offline={went_offline}")
            if went_offline:
                await self.broadcast(
                    OutboundEvent.user_status,
                    {"userId": user_id, "status": PresenceStatus.offline.value},
                )
        return went_offline

    def lookup(self, user_id: int) -> frozenset[Connection]:
        return frozenset(self._connections.get(user_id, ()))

    def is_online(self, user_id: int) -> bool:
        return bool(self._connections.get(user_id))

    def online_users(self) -> set[int]:
        return set(self._connections)

    async def send_to_user(
        self, user_id: int, event: OutboundEvent, data: dict[str, Any]
    ) -> int:
        """Push an event to every connection of the user, return how many got it"""
        delivered = 0
        for connection in self.lookup(user_id):
            if await self._deliver(connection, event, data):
                delivered += 1
        return delivered

    async def broadcast(self, event: OutboundEvent, data: dict[str, Any]) -> None:
        connections = [c for handles in list(self._connections.values()) for c in handles]
        for connection in connections:
            await self._deliver(connection, event, data)

    async def _deliver(
        self, connection: Connection, event: OutboundEvent, data: dict[str, Any]
    ) -> bool:
        # best effort: the stored record stays the source of truth
        try:
            await connection.send_event(event, data)
        except Exception as e:
            ratelimited_log(logger.warning, f"Could not push {event.value}: {e!r}")
            return False
        return True
