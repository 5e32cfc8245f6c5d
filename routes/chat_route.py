from typing import Optional

from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from pydantic import BaseModel, Field

from controllers.chat_controller import get_chat, new_chat, send_image, send_message

MAX_MESSAGE_CHARS = 500

router = APIRouter(prefix="/chat")


class MessageRequest(BaseModel):
    text: str = Field(..., max_length=MAX_MESSAGE_CHARS)


@router.get("")
async def get_chat_route(request: Request):
    """Return the active session, its messages and the loading flag."""
    try:
        return await get_chat(request)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/messages")
async def post_message_route(request: Request, payload: MessageRequest):
    """Send a typed question and return the updated conversation."""
    try:
        return await send_message(request, payload.text)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/images")
async def post_image_route(request: Request, file: Optional[UploadFile] = File(None)):
    """Send a photographed problem; an absent file means the selection was cancelled."""
    try:
        return await send_image(request, file)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/new")
async def new_chat_route(request: Request):
    """Start a new conversation."""
    try:
        return await new_chat(request)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
