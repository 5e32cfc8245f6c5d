"""Turn sequencing for the active chat session.

The controller owns the in-memory message list of the active session. Each
turn appends the user message, calls the gateway and appends the assistant
reply (or a fixed error reply), writing through to the session store after
every append. Only one turn runs at a time; a second request made while a
turn or a session switch is in flight is rejected with `TurnOutcome.BUSY`.
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from models.chat_models import ChatSession, Message, now_ms
from services.gateway.gateway_client import GatewayClient
from services.session_store import SessionStore
from services.step_extractor import extract_steps

IMAGE_TURN_PROMPT = "Please help me solve this homework problem."
TEXT_ERROR_MESSAGE = "Sorry, I encountered an error while processing your question. Please try again."
IMAGE_ERROR_MESSAGE = "Sorry, I encountered an error while analyzing your image. Please try again."
INIT_ERROR_MESSAGE = "Failed to initialize chat. Please restart the app."


class TurnState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    SWITCHING = "switching"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class TurnOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    IGNORED = "ignored"
    BUSY = "busy"


class ChatInitializationError(RuntimeError):
    """Raised when no session can be resolved or created."""


class MessageFlowController:
    """Drive user turns against the active session."""

    def __init__(self, store: SessionStore, gateway: GatewayClient) -> None:
        self._store = store
        self._gateway = gateway
        self._session: Optional[ChatSession] = None
        self._state = TurnState.IDLE
        self._last_outcome: Optional[TurnOutcome] = None
        self._last_stamp = 0
        self._init_lock = asyncio.Lock()

    @property
    def state(self) -> TurnState:
        return self._state

    @property
    def loading(self) -> bool:
        return self._state is TurnState.SENDING

    @property
    def busy(self) -> bool:
        """True while a turn or a session switch is in flight."""
        return self._state in (TurnState.SENDING, TurnState.SWITCHING)

    @property
    def last_outcome(self) -> Optional[TurnOutcome]:
        return self._last_outcome

    @property
    def current_session(self) -> Optional[ChatSession]:
        return self._session

    @property
    def messages(self) -> List[Message]:
        return list(self._session.messages) if self._session else []

    async def initialize(self) -> ChatSession:
        """Resume the session named by the stored pointer, or start a new one.

        A pointer that names a missing session is treated as no pointer.

        Raises:
            ChatInitializationError: If no session could be resolved or created.
        """
        try:
            session = None
            current_id = await self._store.get_current_session_id()
            if current_id:
                session = await self._store.get_session(current_id)
            if session is None:
                session = await self._store.create_session()
        except Exception as exc:
            logging.error("Error initializing chat: %s", exc)
            raise ChatInitializationError(INIT_ERROR_MESSAGE) from exc

        self._activate(session)
        return session

    async def ensure_ready(self) -> ChatSession:
        """Return the active session, initializing once if there is none yet."""
        async with self._init_lock:
            if self._session is None:
                return await self.initialize()
            return self._session

    async def send_text(self, text: str) -> TurnOutcome:
        """Run a typed-question turn. Blank input is ignored without a request."""
        cleaned = (text or "").strip()
        if not cleaned:
            return TurnOutcome.IGNORED
        if self.busy:
            return TurnOutcome.BUSY
        return await self._run_turn(
            lambda message_id, stamp: Message.user(message_id, cleaned, stamp),
            lambda: self._gateway.ask_question(cleaned),
            TEXT_ERROR_MESSAGE,
        )

    async def send_image(self, image_data: Optional[str]) -> TurnOutcome:
        """Run a photographed-problem turn. `None` means the selection was cancelled."""
        if not image_data:
            return TurnOutcome.IGNORED
        if self.busy:
            return TurnOutcome.BUSY
        return await self._run_turn(
            lambda message_id, stamp: Message.user(message_id, IMAGE_TURN_PROMPT, stamp, image=image_data),
            lambda: self._gateway.analyze_image(image_data),
            IMAGE_ERROR_MESSAGE,
        )

    async def new_session(self) -> Optional[ChatSession]:
        """Start a fresh session and make it active. Returns None while busy."""
        if self.busy:
            return None
        self._state = TurnState.SWITCHING
        try:
            session = await self._store.create_session()
            self._activate(session)
            return session
        finally:
            self._state = TurnState.IDLE

    async def open_session(self, session_id: str) -> Optional[ChatSession]:
        """Make a stored session active. Returns None if it is unknown or the controller is busy."""
        if self.busy:
            return None
        self._state = TurnState.SWITCHING
        try:
            session = await self._store.get_session(session_id)
            if session is None:
                return None
            await self._store.set_current_session_id(session.id)
            self._activate(session)
            return session
        finally:
            self._state = TurnState.IDLE

    async def delete_session(self, session_id: str) -> Optional[ChatSession]:
        """Delete a stored session and return the active session afterwards.

        Deleting the active session starts a new one so the pointer never
        dangles past this call. Returns None while busy.
        """
        if self.busy:
            return None
        self._state = TurnState.SWITCHING
        try:
            await self._store.delete_session(session_id)
            if self._session is not None and self._session.id == session_id:
                self._activate(await self._store.create_session())
            return self._session
        finally:
            self._state = TurnState.IDLE

    async def list_sessions(self) -> List[ChatSession]:
        return await self._store.list_sessions()

    async def _run_turn(
        self,
        build_user_message: Callable[[str, int], Message],
        request: Callable[[], Awaitable[str]],
        error_text: str,
    ) -> TurnOutcome:
        # The flag is set before the first await so a concurrent call sees BUSY.
        self._state = TurnState.SENDING
        start_time = time.time()
        try:
            session = await self.ensure_ready()
            await self._append(session, build_user_message(*self._next_id_and_stamp()))

            try:
                reply = await request()
            except Exception as exc:
                logging.error("Error getting AI response: %s", exc)
                message_id, stamp = self._next_id_and_stamp()
                await self._append(session, Message.assistant(message_id, error_text, stamp))
                self._state = TurnState.FAILED
                outcome = TurnOutcome.FAILED
            else:
                steps = extract_steps(reply)
                message_id, stamp = self._next_id_and_stamp()
                await self._append(session, Message.assistant(message_id, reply, stamp, steps=steps))
                self._state = TurnState.SUCCEEDED
                outcome = TurnOutcome.SUCCEEDED

            logging.info(
                "Turn %s for session %s in %.3fs", outcome.value, session.id, time.time() - start_time
            )
            self._last_outcome = outcome
            return outcome
        finally:
            self._state = TurnState.IDLE

    async def _append(self, session: ChatSession, message: Message) -> None:
        messages = [*session.messages, message]
        session.replace_messages(messages, updated_at=message.timestamp)
        await self._store.update_session(session.id, messages)

    def _activate(self, session: ChatSession) -> None:
        self._session = session
        if session.messages:
            self._last_stamp = max(self._last_stamp, max(m.timestamp for m in session.messages))

    def _next_stamp(self) -> int:
        """Return a millisecond timestamp strictly greater than any handed out before."""
        stamp = max(now_ms(), self._last_stamp + 1)
        self._last_stamp = stamp
        return stamp

    def _next_id_and_stamp(self) -> tuple[str, int]:
        stamp = self._next_stamp()
        return str(stamp), stamp
