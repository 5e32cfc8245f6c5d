"""Chat domain models persisted in the local history store."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

DEFAULT_TITLE = "New Chat"
TITLE_PREFIX_LENGTH = 30
TITLE_TRUNCATION_MARKER = "..."


def now_ms() -> int:
	"""Return the current time in milliseconds since the epoch."""
	return int(time.time() * 1000)


def title_from_content(content: str) -> str:
	"""Derive a session title from the first user message."""
	return content[:TITLE_PREFIX_LENGTH] + TITLE_TRUNCATION_MARKER


class Role(str, Enum):
	USER = "user"
	ASSISTANT = "assistant"


@dataclass
class Message:
	"""One turn in a conversation.

	`image` is only ever set on user messages and `steps` only on assistant
	messages, and `steps` always holds at least two entries when present.
	Use `Message.user` / `Message.assistant` rather than the raw constructor.
	"""

	id: str
	role: Role
	content: str
	timestamp: int
	image: Optional[str] = None
	steps: Optional[List[str]] = None

	def __post_init__(self) -> None:
		self.role = Role(self.role)
		if self.role is Role.USER and self.steps is not None:
			raise ValueError("User messages cannot carry steps.")
		if self.role is Role.ASSISTANT and self.image is not None:
			raise ValueError("Assistant messages cannot carry an image.")
		if self.steps is not None:
			self.steps = list(self.steps)
			if len(self.steps) < 2:
				raise ValueError("steps must contain at least two entries when present.")

	@classmethod
	def user(cls, message_id: str, content: str, timestamp: int, image: Optional[str] = None) -> "Message":
		return cls(id=message_id, role=Role.USER, content=content, timestamp=timestamp, image=image)

	@classmethod
	def assistant(
		cls,
		message_id: str,
		content: str,
		timestamp: int,
		steps: Optional[Iterable[str]] = None,
	) -> "Message":
		"""Build an assistant message, folding a single-step result back into plain prose."""
		step_list = list(steps) if steps is not None else []
		return cls(
			id=message_id,
			role=Role.ASSISTANT,
			content=content,
			timestamp=timestamp,
			steps=step_list if len(step_list) >= 2 else None,
		)

	def to_dict(self) -> Dict[str, Any]:
		data: Dict[str, Any] = {
			"id": self.id,
			"role": self.role.value,
			"content": self.content,
			"timestamp": self.timestamp,
		}
		if self.image is not None:
			data["image"] = self.image
		if self.steps is not None:
			data["steps"] = list(self.steps)
		return data

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Message":
		"""Rebuild a message from its stored form; accepts the legacy `type` key for the role."""
		role = data.get("role") or data.get("type")
		return cls(
			id=str(data["id"]),
			role=Role(role),
			content=str(data.get("content", "")),
			timestamp=int(data["timestamp"]),
			image=data.get("image"),
			steps=data.get("steps"),
		)


@dataclass
class ChatSession:
	"""One persisted conversation thread."""

	id: str
	title: str = DEFAULT_TITLE
	messages: List[Message] = field(default_factory=list)
	created_at: int = field(default_factory=now_ms)
	updated_at: int = 0

	def __post_init__(self) -> None:
		self.messages = list(self.messages)
		if not self.updated_at:
			self.updated_at = self.created_at
		if self.updated_at < self.created_at:
			raise ValueError("updated_at cannot precede created_at.")

	def replace_messages(self, messages: Iterable[Message], updated_at: Optional[int] = None) -> None:
		"""Swap in a new message list, bump `updated_at` and set the title once.

		The title is rewritten only while it still holds the default placeholder,
		from the first user message in the new list.
		"""
		self.messages = list(messages)
		stamp = updated_at if updated_at is not None else now_ms()
		self.updated_at = max(stamp, self.updated_at, self.created_at)

		if self.title == DEFAULT_TITLE and self.messages:
			first_user = next((m for m in self.messages if m.role is Role.USER), None)
			if first_user is not None:
				self.title = title_from_content(first_user.content)

	def to_dict(self) -> Dict[str, Any]:
		return {
			"id": self.id,
			"title": self.title,
			"messages": [m.to_dict() for m in self.messages],
			"createdAt": self.created_at,
			"updatedAt": self.updated_at,
		}

	def summary(self) -> Dict[str, Any]:
		"""Return the listing view of the session without message bodies."""
		return {
			"id": self.id,
			"title": self.title,
			"createdAt": self.created_at,
			"updatedAt": self.updated_at,
			"messageCount": len(self.messages),
		}

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "ChatSession":
		return cls(
			id=str(data["id"]),
			title=str(data.get("title") or DEFAULT_TITLE),
			messages=[Message.from_dict(m) for m in data.get("messages") or []],
			created_at=int(data["createdAt"]),
			updated_at=int(data.get("updatedAt") or data["createdAt"]),
		)
