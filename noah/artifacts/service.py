"""Turns client artifact submissions into archive records and hands them to the archive facade."""
from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from noah.archive.models import ArtifactRecord, WriteOutcome, WriteResult
from noah.archive.service import ArchiveService, get_archive_service
from noah.artifacts.parser import try_parse_artifact

logger = logging.getLogger(__name__)


class ArtifactSubmission(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_input: str = Field(alias="userInput")
    artifact_content: str = Field(alias="artifactContent")
    title: str
    tool_content: str = Field(alias="toolContent")
    generation_time: float = Field(default=0, alias="generationTime", allow_inf_nan=False)
    session_id: Optional[str] = Field(default=None, alias="sessionId")


def build_artifact_record(submission: ArtifactSubmission, session_id: str) -> ArtifactRecord:
    """Prefer the submitted title/tool body; fill gaps and reasoning from the raw protocol text."""
    title = submission.title.strip()
    content = submission.tool_content.strip()
    reasoning = ""
    parsed = try_parse_artifact(submission.artifact_content)
    if parsed is not None:
        title = title or parsed.title
        content = content or parsed.tool_content
        reasoning = parsed.reasoning
    elif not content:
        content = submission.artifact_content.strip()
    return ArtifactRecord(
        session_id=session_id,
        title=title,
        content=content,
        reasoning_text=reasoning,
        user_input=submission.user_input,
        generation_time_ms=submission.generation_time,
    )


def archive_submission(
    submission: ArtifactSubmission,
    session_id: str,
    service: Optional[ArchiveService] = None,
) -> WriteResult:
    """Never raises; archive problems come back as a dropped result."""
    try:
        svc = service or get_archive_service()
    except Exception as exc:
        logger.error("Archive unavailable, artifact for session %s not stored: %s", session_id, exc)
        return WriteResult(outcome=WriteOutcome.dropped, reason=str(exc))
    record = build_artifact_record(submission, session_id)
    return svc.log_artifact(record)
