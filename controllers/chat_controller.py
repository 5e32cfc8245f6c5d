import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, UploadFile

from services.image_normalizer import ImageNormalizer
from services.message_flow import ChatInitializationError, MessageFlowController, TurnOutcome
from utils.media_validation import read_image_upload

IMAGE_PROCESSING_ERROR = "Failed to process image. Please try again."
BUSY_DETAIL = "A message is already being processed."


async def get_ready_flow(request: Request) -> MessageFlowController:
    """Return the shared message flow controller, initializing it on first use.

    Raises:
        HTTPException(503) if no chat session can be resolved or created.
    """
    flow: MessageFlowController = request.app.state.message_flow
    try:
        await flow.ensure_ready()
    except ChatInitializationError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return flow


def serialize_chat_state(flow: MessageFlowController) -> Dict[str, Any]:
    """Render the active session, its messages and the loading flag."""
    session = flow.current_session
    return {
        "session": session.summary() if session else None,
        "messages": [m.to_dict() for m in flow.messages],
        "loading": flow.loading,
    }


def _turn_response(flow: MessageFlowController, outcome: TurnOutcome) -> Dict[str, Any]:
    if outcome is TurnOutcome.BUSY:
        raise HTTPException(status_code=409, detail=BUSY_DETAIL)
    result = serialize_chat_state(flow)
    result["outcome"] = outcome.value
    return result


async def get_chat(request: Request) -> Dict[str, Any]:
    flow = await get_ready_flow(request)
    return serialize_chat_state(flow)


async def send_message(request: Request, text: str) -> Dict[str, Any]:
    """Run a typed-question turn against the active session.

    Args:
        request: FastAPI Request object (used to access app.state for shared services).
        text: Raw user input; blank input is ignored.

    Returns:
        The chat state after the turn plus the turn `outcome`.
    """
    flow = await get_ready_flow(request)
    outcome = await flow.send_text(text)
    return _turn_response(flow, outcome)


async def send_image(request: Request, file: Optional[UploadFile]) -> Dict[str, Any]:
    """Run a photographed-problem turn against the active session.

    Args:
        request: FastAPI Request object (used to access app.state for shared services).
        file: Uploaded photo as raw image bytes or base64 text. A missing or
            empty upload is treated as a cancelled selection.

    Returns:
        The chat state after the turn plus the turn `outcome`.
    """
    flow = await get_ready_flow(request)
    if flow.busy:
        raise HTTPException(status_code=409, detail=BUSY_DETAIL)

    b64_input = await read_image_upload(file)

    image_data: Optional[str] = None
    if b64_input is not None:
        normalizer: ImageNormalizer = request.app.state.image_normalizer
        try:
            image_data = normalizer.to_jpeg_base64(b64_input)
        except ValueError as exc:
            logging.error("Error handling image: %s", exc)
            raise HTTPException(status_code=400, detail=IMAGE_PROCESSING_ERROR) from exc

    outcome = await flow.send_image(image_data)
    return _turn_response(flow, outcome)


async def new_chat(request: Request) -> Dict[str, Any]:
    """Start a new session and make it active; earlier sessions are kept."""
    flow = await get_ready_flow(request)
    session = await flow.new_session()
    if session is None:
        raise HTTPException(status_code=409, detail=BUSY_DETAIL)
    return serialize_chat_state(flow)
