"""
HTTP API Routes for pokertable.

These routes create tables, manage seats and accept actions. Every write goes
through the same room lock as WebSocket messages and is replicated to the
room's WebSocket viewers.
"""

from typing import Any, Dict, Optional
from fastapi import APIRouter, HTTPException, Request

from pokertable.core.table import ActionResult
from pokertable.server.schemas import (
    CreateTableRequest, JoinRequest, LeaveRequest, ActionRequest,
    ActionResultSchema, GameStateSchema, LegalActionsSchema, TableCreatedSchema,
)
from pokertable.server.websocket import TableManager, TableRoom

router = APIRouter()

# Rejections that concern seats rather than game play
CONFLICT_CODES = {"INVALID_SEAT"}


def get_manager(request: Request) -> TableManager:
    return request.app.state.manager


def get_room(request: Request, table_id: str) -> TableRoom:
    """Get a room or fail with 404."""
    room = get_manager(request).get_room(table_id)
    if room is None:
        raise HTTPException(status_code=404, detail=f"Table {table_id} not found")
    return room


async def run_write(room: TableRoom, operation, *args, **kwargs) -> ActionResult:
    """Apply a table write under the room lock and replicate it."""
    async with room.lock:
        result: ActionResult = operation(*args, **kwargs)
        if not result.success:
            status = 409 if result.code in CONFLICT_CODES else 400
            raise HTTPException(status_code=status, detail=result.message)
        await room.after_write(result)
    return result


def result_response(room: TableRoom, result: ActionResult, viewer_id: Optional[str]) -> Dict[str, Any]:
    return {
        "success": result.success,
        "message": result.message,
        "action": result.action.value if result.action else None,
        "amount": result.amount,
        "player_id": result.player_id,
        "state": room.state_for(viewer_id),
    }


@router.post("/tables", response_model=TableCreatedSchema, status_code=201)
async def create_table(req: CreateTableRequest, request: Request) -> Dict[str, Any]:
    """Create a new table in the waiting phase."""
    try:
        room = get_manager(request).create_room(
            small_blind=req.small_blind,
            big_blind=req.big_blind,
            turn_time=req.turn_time,
            side_pots=req.side_pots,
            table_id=req.table_id,
        )
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return {"table_id": room.table_id, "state": room.state_for(None)}


@router.get("/tables/{table_id}", response_model=GameStateSchema)
async def get_table_state(table_id: str, request: Request,
                          player_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Get the table state.

    Hole cards are included only for `player_id` (and for everyone still in
    the hand at showdown).
    """
    return get_room(request, table_id).state_for(player_id)


@router.post("/tables/{table_id}/join", response_model=ActionResultSchema)
async def join_table(table_id: str, req: JoinRequest, request: Request) -> Dict[str, Any]:
    """Take the lowest free seat."""
    room = get_room(request, table_id)
    result = await run_write(room, room.table.join, req.name,
                             player_id=req.player_id, chips=req.chips)
    return result_response(room, result, result.player_id)


@router.post("/tables/{table_id}/leave", response_model=ActionResultSchema)
async def leave_table(table_id: str, req: LeaveRequest, request: Request) -> Dict[str, Any]:
    """Leave the table, folding first if still in a hand."""
    room = get_room(request, table_id)
    result = await run_write(room, room.table.leave, req.player_id)
    return result_response(room, result, None)


@router.post("/tables/{table_id}/start", response_model=ActionResultSchema)
async def start_hand(table_id: str, request: Request) -> Dict[str, Any]:
    """
    Start a hand.

    Deals cards and posts blinds.
    """
    room = get_room(request, table_id)
    result = await run_write(room, room.table.start_hand)
    return result_response(room, result, None)


@router.post("/tables/{table_id}/next", response_model=ActionResultSchema)
async def next_hand(table_id: str, request: Request) -> Dict[str, Any]:
    """Start the next hand after showdown."""
    room = get_room(request, table_id)
    result = await run_write(room, room.table.next_hand)
    return result_response(room, result, None)


@router.post("/tables/{table_id}/action", response_model=ActionResultSchema)
async def take_action(table_id: str, req: ActionRequest, request: Request) -> Dict[str, Any]:
    """
    Take a game action.

    Only the current player may act; the response carries the new state as
    that player sees it.
    """
    room = get_room(request, table_id)
    result = await run_write(room, room.table.submit, req.player_id, req.action, req.amount)
    return result_response(room, result, req.player_id)


@router.get("/tables/{table_id}/legal_actions", response_model=LegalActionsSchema)
async def get_legal_actions(table_id: str, request: Request,
                            player_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Get legal actions for the current player (or for `player_id`, which is
    empty unless it is their turn).
    """
    room = get_room(request, table_id)
    return {"player_id": player_id, "actions": room.table.legal_actions(player_id)}
