"""Session history helpers: listing, switching and deleting stored chats."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import HTTPException, Request

from controllers.chat_controller import BUSY_DETAIL, get_ready_flow, serialize_chat_state


async def list_sessions(request: Request) -> Dict[str, Any]:
	"""Return every stored session, newest first, without message bodies."""
	flow = await get_ready_flow(request)
	sessions = await flow.list_sessions()
	active = flow.current_session
	return {
		"data": [s.summary() for s in sessions],
		"current_session_id": active.id if active else None,
	}


async def open_session(request: Request, session_id: str) -> Dict[str, Any]:
	"""Make a stored session the active one."""
	flow = await get_ready_flow(request)
	if flow.busy:
		raise HTTPException(status_code=409, detail=BUSY_DETAIL)
	session = await flow.open_session(session_id)
	if session is None:
		raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
	return serialize_chat_state(flow)


async def delete_session(request: Request, session_id: str) -> Dict[str, Any]:
	"""Delete a stored session; deleting the active one starts a new chat."""
	flow = await get_ready_flow(request)
	active = await flow.delete_session(session_id)
	if active is None:
		raise HTTPException(status_code=409, detail=BUSY_DETAIL)
	return {"ok": True, "session": active.summary()}
