"""Connection manager for authenticated web websocket clients."""
import asyncio
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from fastapi import WebSocket

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ConnectionManager:
    """Tracks one websocket per user; a newer connection replaces the older one."""

    def __init__(self, timeout: int = 300, check_interval: int = 30) -> None:
        self.web_connections: Dict[str, WebSocket] = {}
        self.heartbeat_tasks: Dict[str, asyncio.Task] = {}
        self.last_heartbeat: Dict[str, datetime] = {}
        self.timeout = timedelta(seconds=timeout)
        self.check_interval = check_interval

    async def connect_web(self, user_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        previous = self.web_connections.get(user_id)
        self.web_connections[user_id] = websocket
        self.last_heartbeat[user_id] = _now()
        self._start_heartbeat_monitor(user_id)
        if previous is not None and previous is not websocket:
            try:
                await previous.close()
            except Exception as exc:  # pylint: disable=broad-except
                logger.debug("Closing stale socket for user %s failed: %s", user_id, exc)
        logger.info("Web user %s connected", user_id)

    async def disconnect_web(self, user_id: str, websocket: Optional[WebSocket] = None) -> None:
        current = self.web_connections.get(user_id)
        if websocket is not None and current is not websocket:
            # A newer connection already replaced this one.
            return
        self.web_connections.pop(user_id, None)
        self.last_heartbeat.pop(user_id, None)
        task = self.heartbeat_tasks.pop(user_id, None)
        if task and task is not asyncio.current_task():
            task.cancel()
        logger.info("Web user %s disconnected", user_id)

    async def send_to_web(self, user_id: str, message: dict) -> bool:
        websocket = self.web_connections.get(user_id)
        if websocket is None:
            logger.debug("Web user %s is offline", user_id)
            return False
        try:
            await websocket.send_text(json.dumps(message, default=str))
            return True
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Sending to web user %s failed: %s", user_id, exc)
            await self.disconnect_web(user_id)
            return False

    def is_online(self, user_id: str) -> bool:
        return user_id in self.web_connections

    def get_online_count(self) -> int:
        return len(self.web_connections)

    def update_heartbeat(self, user_id: str) -> None:
        self.last_heartbeat[user_id] = _now()

    async def close_all(self) -> None:
        for user_id in list(self.web_connections.keys()):
            websocket = self.web_connections.get(user_id)
            await self.disconnect_web(user_id)
            if websocket is not None:
                try:
                    await websocket.close()
                except Exception as exc:  # pylint: disable=broad-except
                    logger.debug("Closing socket for user %s failed: %s", user_id, exc)

    def _start_heartbeat_monitor(self, user_id: str) -> None:
        task = self.heartbeat_tasks.get(user_id)
        if task:
            task.cancel()
        self.heartbeat_tasks[user_id] = asyncio.create_task(self._heartbeat_monitor(user_id))

    async def _heartbeat_monitor(self, user_id: str) -> None:
        try:
            while True:
                await asyncio.sleep(self.check_interval)
                last = self.last_heartbeat.get(user_id)
                if last and _now() - last > self.timeout:
                    logger.warning("Web user %s heartbeat timed out, dropping connection", user_id)
                    websocket = self.web_connections.get(user_id)
                    await self.disconnect_web(user_id)
                    if websocket is not None:
                        try:
                            await websocket.close()
                        except Exception as exc:  # pylint: disable=broad-except
                            logger.debug("Closing timed out socket for %s failed: %s", user_id, exc)
                    break
        except asyncio.CancelledError:
            logger.debug("Heartbeat monitor for web user %s cancelled", user_id)
