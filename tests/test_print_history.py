"""Tests for the history printing script."""

import asyncio

from models.chat_models import ChatSession, Message
from print_history import format_session, main


def test_format_session_lists_messages_and_steps():
    session = ChatSession(id="abc", created_at=0)
    session.replace_messages(
        [
            Message.user("1", "Please help me solve this homework problem.", 1, image="aGVsbG8="),
            Message.assistant("2", "Step 1: a\nStep 2: b", 2, steps=["Step 1: a", "Step 2: b"]),
        ],
        updated_at=2,
    )

    text = format_session(session, current_id="abc")

    lines = text.splitlines()
    assert lines[0] == "* Please help me solve this home... [abc]"
    assert "1970-01-01 00:00:00 UTC" in lines[1]
    assert "  USER: Please help me solve this homework problem. (image attached)" in lines
    assert "    1. Step 1: a" in lines
    assert "    2. Step 2: b" in lines


def test_main_prints_stored_sessions(monkeypatch, tmp_path, capsys, store):
    async def seed():
        session = await store.create_session()
        await store.update_session(session.id, [Message.user("1", "What is 2+2?", 1)])

    asyncio.run(seed())
    monkeypatch.setenv("DATABASE_DIR", str(tmp_path / "db"))

    asyncio.run(main())

    out = capsys.readouterr().out
    assert "* What is 2+2?..." in out
    assert "USER: What is 2+2?" in out


def test_main_reports_empty_history(monkeypatch, tmp_path, capsys):
    monkeypatch.setenv("DATABASE_DIR", str(tmp_path / "empty"))

    asyncio.run(main())

    assert "No chat sessions stored." in capsys.readouterr().out
