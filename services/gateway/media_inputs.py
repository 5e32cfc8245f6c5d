"""Utilities to build chat-completion message payloads."""

from typing import Any, Dict, List


def to_image_data_url(image_data: str | bytes) -> str:
    """Convert base64 image data into a data URL suitable for vision input."""
    if isinstance(image_data, bytes):
        try:
            image_data = image_data.decode("utf-8")
        except Exception as exc:
            raise ValueError("Image bytes must be base64-encoded UTF-8.") from exc
    return f"data:image/jpeg;base64,{image_data}"


def build_text_messages(system_prompt: str, question: str) -> List[Dict[str, Any]]:
    """Build the two-message prompt for a typed question."""
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": question},
    ]


def build_image_messages(system_prompt: str, question: str, image_data: str | bytes) -> List[Dict[str, Any]]:
    """Build the prompt for an image question; the user turn mixes a text part and an image part."""
    return [
        {"role": "system", "content": system_prompt},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": question},
                {"type": "image_url", "image_url": {"url": to_image_data_url(image_data)}},
            ],
        },
    ]
