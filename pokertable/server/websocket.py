"""
WebSocket handling for real-time state replication.

This module provides:
- TableRoom: one authoritative PokerTable plus its connected viewers and
  turn timer
- TableManager: the rooms served by one process
- WebSocket endpoint: viewers receive every new state; players send actions

All writes to a room go through `TableRoom.lock`, so two messages never
interleave against the same table. After each accepted write the room
pushes a personalized state to every viewer.
"""

from __future__ import annotations
import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from pokertable.core.table import ActionResult, PokerTable
from pokertable.server.schemas import WSErrorMessage, WSMessage


logger = logging.getLogger(__name__)


@dataclass
class TableRoom:
    """A table with its connected viewers."""
    table: PokerTable
    connections: Dict[str, List[WebSocket]] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    timer_task: Optional[asyncio.Task] = None

    @property
    def table_id(self) -> str:
        return self.table.table_id

    def state_for(self, viewer_id: Optional[str]) -> Dict[str, Any]:
        return self.table.snapshot().to_dict(for_player_id=viewer_id)

    async def send_state_to_all(self) -> None:
        """Send personalized table state to each connected viewer."""
        state = self.table.snapshot()
        for viewer_id, sockets in list(self.connections.items()):
            view = {"type": "state", **state.to_dict(for_player_id=viewer_id)}
            for ws in list(sockets):
                try:
                    await ws.send_json(view)
                except Exception as e:
                    logger.error(f"Error sending state to {viewer_id}: {e}")
                    self.remove_connection(viewer_id, ws)

    def add_connection(self, viewer_id: str, websocket: WebSocket) -> None:
        self.connections.setdefault(viewer_id, []).append(websocket)

    def remove_connection(self, viewer_id: str, websocket: WebSocket) -> bool:
        """Forget one socket of a viewer; other sockets of the same viewer stay."""
        sockets = self.connections.get(viewer_id, [])
        # WebSocket compares by scope contents, so match on identity
        remaining = [ws for ws in sockets if ws is not websocket]
        if len(remaining) == len(sockets):
            return False
        if remaining:
            self.connections[viewer_id] = remaining
        else:
            del self.connections[viewer_id]
        return True

    async def after_write(self, result: ActionResult) -> None:
        """Replicate an accepted write and re-arm the turn timer."""
        if not result.success:
            return
        await self.send_state_to_all()
        self.restart_timer()

    def restart_timer(self) -> None:
        """Cancel the running turn timer and start one for the current player."""
        if self.timer_task is not None and not self.timer_task.done():
            self.timer_task.cancel()
        self.timer_task = None

        state = self.table.snapshot()
        if state.turn_time <= 0 or state.current_player_id is None:
            return
        self.timer_task = asyncio.create_task(
            self._turn_timer(state.current_player_id, state.hand_number, state.turn_time)
        )

    def stop_timer(self) -> None:
        if self.timer_task is not None and not self.timer_task.done():
            self.timer_task.cancel()
        self.timer_task = None

    async def _turn_timer(self, player_id: str, hand_number: int, seconds: int) -> None:
        await asyncio.sleep(seconds)
        async with self.lock:
            state = self.table.snapshot()
            if state.hand_number != hand_number or state.current_player_id != player_id:
                return
            # Clear the handle so after_write does not cancel this task
            self.timer_task = None
            result = self.table.timeout(player_id)
            await self.after_write(result)


class TableManager:
    """
    Manages table rooms and viewer connections.

    Usage:
        manager = TableManager()
        room = manager.create_room(big_blind=20, small_blind=10)
        await manager.connect(room.table_id, viewer_id, websocket)
        await manager.handle_message(room.table_id, viewer_id, message)
        await manager.disconnect(room.table_id, viewer_id, websocket)
    """

    def __init__(self):
        self.rooms: Dict[str, TableRoom] = {}

    def create_room(self, **table_options: Any) -> TableRoom:
        """Create a new room around a fresh table."""
        table_id = table_options.pop("table_id", None) or f"table-{uuid.uuid4().hex[:8]}"
        if table_id in self.rooms:
            raise ValueError(f"Table {table_id} already exists")

        table = PokerTable(table_id=table_id, **table_options)
        room = TableRoom(table=table)
        self.rooms[table_id] = room
        logger.info(f"Created table {table_id}")
        return room

    def get_room(self, table_id: str) -> Optional[TableRoom]:
        """Get a room by table ID."""
        return self.rooms.get(table_id)

    async def connect(self, table_id: str, viewer_id: str, websocket: WebSocket) -> bool:
        """
        Register an accepted WebSocket as a viewer of a table.

        Returns:
            True if connected successfully
        """
        room = self.get_room(table_id)
        if room is None:
            logger.warning(f"Table {table_id} not found")
            return False

        room.add_connection(viewer_id, websocket)
        logger.info(f"Viewer {viewer_id} connected to {table_id}")
        await websocket.send_json({"type": "state", **room.state_for(viewer_id)})
        return True

    async def disconnect(self, table_id: str, viewer_id: str, websocket: WebSocket) -> None:
        """Drop one viewer connection; the seat itself is kept."""
        room = self.get_room(table_id)
        if room and room.remove_connection(viewer_id, websocket):
            logger.info(f"Viewer {viewer_id} disconnected from {table_id}")

    async def shutdown(self) -> None:
        for room in self.rooms.values():
            room.stop_timer()

    async def handle_message(
        self,
        table_id: str,
        viewer_id: str,
        message: Dict[str, Any],
    ) -> Optional[Dict[str, Any]]:
        """
        Handle a message from a viewer.

        Args:
            table_id: The table ID
            viewer_id: The connection's viewer (and player) ID
            message: The message dict with 'type' and optional data

        Returns:
            A reply for the sender only, or None when the new state was
            already broadcast
        """
        room = self.get_room(table_id)
        if room is None:
            return _error("Table not found")

        try:
            msg = WSMessage.model_validate(message)
        except ValidationError as e:
            return _error(f"Malformed message: {e.errors()[0]['msg']}")

        if msg.type == "get_state":
            return {"type": "state", **room.state_for(viewer_id)}
        if msg.type == "legal_actions":
            return {"type": "legal_actions", "actions": room.table.legal_actions(viewer_id)}

        async with room.lock:
            if msg.type == "action":
                if not msg.action:
                    return _error("action is required")
                result = room.table.submit(viewer_id, msg.action, msg.amount)
            elif msg.type == "start_hand":
                result = room.table.start_hand()
            elif msg.type == "next_hand":
                result = room.table.next_hand()
            elif msg.type == "join":
                if not msg.name:
                    return _error("name is required")
                kwargs = {"chips": msg.chips} if msg.chips else {}
                result = room.table.join(msg.name, player_id=viewer_id, **kwargs)
            elif msg.type == "leave":
                result = room.table.leave(viewer_id)
            else:
                return _error(f"Unknown message type: {msg.type}")

            if not result.success:
                return _error(result.message, result.code)
            await room.after_write(result)

        return None


def _error(message: str, code: Optional[str] = None) -> Dict[str, Any]:
    return WSErrorMessage(message=message, code=code).model_dump()


async def websocket_endpoint(websocket: WebSocket, table_id: str, player_id: Optional[str] = None):
    """
    WebSocket endpoint for table replication.

    Protocol:
    1. Client connects to /ws/{table_id}?player_id=... (spectators may omit it)
    2. Server sends the table state, then a new state after every change
    3. Client sends {"type": "action", "action": "call", "amount": 0},
       {"type": "join", "name": "..."}, {"type": "start_hand"}, ...
    4. Rejections come back to the sender as {"type": "error", ...}
    """
    manager: TableManager = websocket.app.state.manager
    viewer_id = player_id or f"spectator-{uuid.uuid4().hex[:8]}"

    await websocket.accept()
    if not await manager.connect(table_id, viewer_id, websocket):
        await websocket.send_json(_error("Table not found"))
        await websocket.close()
        return

    try:
        while True:
            message = await websocket.receive_json()
            reply = await manager.handle_message(table_id, viewer_id, message)
            if reply is not None:
                await websocket.send_json(reply)

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: {viewer_id}")
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
    finally:
        await manager.disconnect(table_id, viewer_id, websocket)
