"""Print every chat session stored in the local history database.

Reuses the same `DATABASE_DIR` behavior as the application via
`utils.database_init.AsyncDatabaseInitializer` and reads sessions through
`services.session_store.SessionStore`, so what is printed is exactly what the
app would resume from.

Run: set the `DATABASE_DIR` environment variable and run `python print_history.py`.
"""
import asyncio
import os
from datetime import datetime, timezone
from typing import List, Optional

from dal.kv_dal import KeyValueDAL
from models.chat_models import ChatSession
from services.session_store import SessionStore
from utils.database_init import AsyncDatabaseInitializer

from dotenv import load_dotenv


def _format_ms(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def format_session(session: ChatSession, current_id: Optional[str] = None) -> str:
    """Return a readable transcript for one session.

    Args:
        session: Session to render.
        current_id: Id of the active session; that session is flagged with `*`.
    """
    marker = "*" if session.id == current_id else " "
    lines: List[str] = [
        f"{marker} {session.title} [{session.id}]",
        f"  created {_format_ms(session.created_at)}, updated {_format_ms(session.updated_at)}",
    ]
    for message in session.messages:
        suffix = " (image attached)" if message.image else ""
        lines.append(f"  {message.role.value.upper()}: {message.content}{suffix}")
        for idx, step in enumerate(message.steps or [], start=1):
            lines.append(f"    {idx}. {step}")
    return "\n".join(lines)


async def main() -> None:
    """Load sessions and the current pointer, then print each session."""
    load_dotenv()
    db_dir = os.getenv("DATABASE_DIR")
    if not db_dir:
        raise RuntimeError("DATABASE_DIR environment variable must be set.")

    store = SessionStore(KeyValueDAL(AsyncDatabaseInitializer(db_dir)))
    sessions = await store.list_sessions()
    current_id = await store.get_current_session_id()

    if not sessions:
        print("No chat sessions stored.")
        return
    for session in sessions:
        print(format_session(session, current_id))
        print()


if __name__ == "__main__":
    asyncio.run(main())
