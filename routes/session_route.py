"""FastAPI routes for browsing and managing stored chat sessions."""

from fastapi import APIRouter, HTTPException, Request

from controllers.session_controller import delete_session, list_sessions, open_session

router = APIRouter(prefix="/sessions")


@router.get("")
async def list_sessions_route(request: Request):
	try:
		return await list_sessions(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/open")
async def open_session_route(request: Request, session_id: str):
	try:
		return await open_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/{session_id}")
async def delete_session_route(request: Request, session_id: str):
	try:
		return await delete_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
