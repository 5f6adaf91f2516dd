"""Parser for the TITLE/TOOL/REASONING artifact text protocol.

The generation step returns plain text shaped like::

    TITLE: <single line title>
    TOOL:
    <tool body lines>
    REASONING:
    <rationale lines>

Only the first occurrence of each marker counts. ``REASONING:`` is optional;
missing ``TITLE:`` or ``TOOL:`` is a hard failure.
"""
from __future__ import annotations

import logging
import re
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

TITLE_MARKER = "TITLE:"
TOOL_MARKER = "TOOL:"
REASONING_MARKER = "REASONING:"


class ArtifactParseError(ValueError):
    def __init__(self, missing: List[str]) -> None:
        self.reason = "missing_markers"
        self.missing = missing
        super().__init__(f"artifact text is missing markers: {', '.join(missing)}")


class ParsedArtifact(BaseModel):
    title: str
    tool_content: str
    reasoning: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.title) and bool(self.tool_content)


class _State(str, Enum):
    seeking = "seeking"
    tool_body = "tool_body"
    reasoning = "reasoning"


def parse_artifact(raw_text: str) -> ParsedArtifact:
    lines = (raw_text or "").split("\n")
    state = _State.seeking
    title: Optional[str] = None
    seen_tool = False
    tool_lines: List[str] = []
    reasoning_lines: List[str] = []

    for line in lines:
        if title is None and line.startswith(TITLE_MARKER):
            title = line[len(TITLE_MARKER):].strip()
        if state is _State.seeking:
            if line.startswith(TOOL_MARKER):
                seen_tool = True
                state = _State.tool_body
            continue
        if state is _State.tool_body:
            if line.startswith(REASONING_MARKER):
                state = _State.reasoning
                continue
            tool_lines.append(line)
            continue
        reasoning_lines.append(line)

    missing = []
    if title is None:
        missing.append(TITLE_MARKER)
    if not seen_tool:
        missing.append(TOOL_MARKER)
    if missing:
        raise ArtifactParseError(missing)

    return ParsedArtifact(
        title=title,
        tool_content="\n".join(tool_lines).strip(),
        reasoning="\n".join(reasoning_lines).strip(),
    )


def try_parse_artifact(raw_text: str) -> Optional[ParsedArtifact]:
    """Parse or return None; failures are logged, never raised."""
    try:
        return parse_artifact(raw_text)
    except ArtifactParseError as exc:
        logger.info("No artifact produced (%s) after %d lines", exc, len((raw_text or "").split("\n")))
        return None


def render_download(artifact: ParsedArtifact) -> str:
    return f"{artifact.title}\n\n{artifact.tool_content}"


def download_filename(title: str) -> str:
    slug = re.sub(r"\s+", "-", title.strip().lower()) or "micro-tool"
    return f"{slug}.txt"
