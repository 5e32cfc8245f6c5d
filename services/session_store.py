"""Durable store for chat sessions and the current-session pointer."""

from __future__ import annotations

import json
import logging
from typing import Iterable, List, Optional
from uuid import uuid4

from dal.kv_dal import KeyValueDAL
from models.chat_models import ChatSession, Message

SESSIONS_KEY = "chat_sessions"
CURRENT_SESSION_KEY = "current_session"


class SessionStore:
	"""Persist chat sessions (newest first) and the id of the active one.

	Every storage failure is logged and absorbed: reads fall back to empty
	values and writes become no-ops. The controller's in-memory state stays
	authoritative for the running conversation.
	"""

	def __init__(self, dal: KeyValueDAL) -> None:
		self._dal = dal

	async def list_sessions(self) -> List[ChatSession]:
		"""Return all stored sessions, or an empty list if nothing usable is stored."""
		try:
			return await self._load_sessions()
		except Exception as exc:
			logging.error("Error loading chat sessions: %s", exc)
			return []

	async def get_session(self, session_id: str) -> Optional[ChatSession]:
		"""Return a stored session by id, or None if it is not present."""
		sessions = await self.list_sessions()
		return next((s for s in sessions if s.id == session_id), None)

	async def create_session(self) -> ChatSession:
		"""Create an empty session, store it first in the list and make it current.

		If the stored list cannot be read the session is returned unsaved, so
		the existing history is never overwritten.
		"""
		try:
			sessions = await self._load_sessions()
		except Exception as exc:
			logging.error("Error loading chat sessions, new session not saved: %s", exc)
			return ChatSession(id=uuid4().hex)

		existing_ids = {s.id for s in sessions}
		session_id = uuid4().hex
		while session_id in existing_ids:
			session_id = uuid4().hex

		session = ChatSession(id=session_id)
		sessions.insert(0, session)
		await self._save_sessions(sessions)
		await self.set_current_session_id(session.id)
		logging.info("Created chat session %s", session.id)
		return session

	async def update_session(self, session_id: str, messages: Iterable[Message]) -> None:
		"""Replace a session's messages; unknown ids are ignored without writing."""
		try:
			sessions = await self._load_sessions()
			session = next((s for s in sessions if s.id == session_id), None)
			if session is None:
				return
			session.replace_messages(messages)
			await self._save_sessions(sessions)
		except Exception as exc:
			logging.error("Error updating session %s: %s", session_id, exc)

	async def delete_session(self, session_id: str) -> None:
		"""Remove a session. The current-session pointer is left untouched."""
		try:
			sessions = await self._load_sessions()
			remaining = [s for s in sessions if s.id != session_id]
			await self._save_sessions(remaining)
		except Exception as exc:
			logging.error("Error deleting session %s: %s", session_id, exc)

	async def get_current_session_id(self) -> Optional[str]:
		try:
			return await self._dal.get_item(CURRENT_SESSION_KEY)
		except Exception as exc:
			logging.error("Error loading current session: %s", exc)
			return None

	async def set_current_session_id(self, session_id: str) -> None:
		try:
			await self._dal.set_item(CURRENT_SESSION_KEY, session_id)
		except Exception as exc:
			logging.error("Error saving current session: %s", exc)

	async def _save_sessions(self, sessions: List[ChatSession]) -> None:
		try:
			await self._dal.set_item(SESSIONS_KEY, json.dumps([s.to_dict() for s in sessions]))
		except Exception as exc:
			logging.error("Error saving chat sessions: %s", exc)

	async def _load_sessions(self) -> List[ChatSession]:
		"""Read the stored list. Missing or corrupt data reads as empty; read errors propagate."""
		raw = await self._dal.get_item(SESSIONS_KEY)
		if not raw:
			return []
		try:
			data = json.loads(raw)
			if not isinstance(data, list):
				raise ValueError(f"expected a list of sessions, got {type(data).__name__}")
			return [ChatSession.from_dict(item) for item in data]
		except (ValueError, TypeError, KeyError, AttributeError) as exc:
			logging.error("Discarding unreadable chat sessions: %s", exc)
			return []
