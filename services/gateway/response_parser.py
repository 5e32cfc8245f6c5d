"""Helpers to pull plain text out of chat-completion responses."""

from typing import Any, Dict, Optional


def _field(obj: Any, name: str) -> Any:
    """Read `name` from either an SDK object or a plain dict."""
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _content_to_text(content: Any) -> Optional[str]:
    """Flatten message content that may be a string or a list of typed parts."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif _field(part, "type") in ("text", "output_text"):
                text = _field(part, "text")
                if isinstance(text, str):
                    parts.append(text)
        return "".join(parts) if parts else None
    return None


def extract_completion_text(response: Any) -> Optional[str]:
    """Return the text of the first completion choice, or None if the shape lacks one."""
    choices = _field(response, "choices")
    if not choices:
        return None
    message = _field(choices[0], "message")
    if message is None:
        return None
    text = _content_to_text(_field(message, "content"))
    return text or None


def extract_usage(response: Any) -> Dict[str, Optional[int]]:
    """Return token usage if present."""
    usage = _field(response, "usage")
    return {
        "input_tokens": _field(usage, "prompt_tokens") if usage else None,
        "output_tokens": _field(usage, "completion_tokens") if usage else None,
    }
