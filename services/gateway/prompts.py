"""Prompt builders for the homework assistant."""

DEFAULT_IMAGE_QUESTION = "Please analyze this homework problem and provide a step-by-step solution."


def build_text_system_prompt() -> str:
    """Return the system prompt used for typed questions."""
    return (
        "You are a helpful homework assistant. "
        "Provide clear, step-by-step solutions to academic questions. "
        "Always show your work and explain each step. "
        "Format your response with clear sections for the answer and steps to solve."
    )


def build_image_system_prompt() -> str:
    """Return the system prompt used when a photographed problem is attached."""
    return (
        "You are a helpful homework assistant. "
        "When analyzing images, provide clear, step-by-step solutions. "
        "Always show your work and explain each step. "
        "Format your response with clear sections for the answer and steps to solve."
    )


def build_image_question(question: str | None) -> str:
    """Return the user's question, or the default prompt when none was given."""
    cleaned = question.strip() if question else ""
    return cleaned or DEFAULT_IMAGE_QUESTION
