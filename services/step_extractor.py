"""Heuristic decomposition of assistant prose into solution steps."""

import re
from typing import List

# "Step 3", "3." (not "3.14"), "* ", "- ", "• "
_MARKER_PATTERN = re.compile(r"^(step\s*\d+|\d+\.(?!\d)|[*\-•]\s)", re.IGNORECASE)
_SEQUENCE_PATTERN = re.compile(r"^((first|second|third)(ly)?|next|then|finally)\b", re.IGNORECASE)


def is_step_line(line: str) -> bool:
    """Return True when a trimmed line opens with a step marker or a sequencing word."""
    return bool(_MARKER_PATTERN.match(line) or _SEQUENCE_PATTERN.match(line))


def extract_steps(text: str) -> List[str]:
    """Split assistant text into ordered step lines.

    Lines are trimmed before matching and collected in their original order.
    When no line looks like a step the whole text is returned unchanged as a
    single entry, so the result is never empty.
    """
    steps = [line.strip() for line in text.split("\n") if is_step_line(line.strip())]
    return steps if steps else [text]
