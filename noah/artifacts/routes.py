from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from noah.archive.models import WriteOutcome
from noah.artifacts.parser import download_filename, render_download, try_parse_artifact
from noah.artifacts.service import ArtifactSubmission, archive_submission
from noah.artifacts.trigger import matched_intents, should_generate_artifact
from noah.common.session import resolve_session_id, session_headers

logger = logging.getLogger(__name__)

LOGGED_MESSAGE = "Micro-tool logged successfully"

router = APIRouter(tags=["artifacts"])


@router.post("/artifact-log")
async def artifact_log(request: Request):
    try:
        submission = ArtifactSubmission.model_validate(await request.json())
    except ValueError as exc:
        logger.error("Failed to read micro-tool log body: %s", exc)
        return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})

    session_id = resolve_session_id(request, submission.session_id)
    logger.info("Logging micro-tool %r for session %s", submission.title, session_id)
    result = archive_submission(submission, session_id)
    if result.outcome is not WriteOutcome.persisted:
        logger.warning("Micro-tool for session %s %s (%s)", session_id, result.outcome.value, result.reason)

    return JSONResponse(
        content={"success": True, "message": LOGGED_MESSAGE},
        headers=session_headers(session_id),
    )


class TriggerCheckRequest(BaseModel):
    utterance: str


@router.post("/artifact-trigger")
def artifact_trigger(payload: TriggerCheckRequest):
    return {
        "shouldGenerate": should_generate_artifact(payload.utterance),
        "intents": [intent.value for intent in matched_intents(payload.utterance)],
    }


class ParseRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    raw_text: str = Field(alias="rawText")


@router.post("/artifact-parse")
def artifact_parse(payload: ParseRequest):
    parsed = try_parse_artifact(payload.raw_text)
    if parsed is None:
        return {"artifact": None, "complete": False, "download": None}
    return {
        "artifact": {
            "title": parsed.title,
            "toolContent": parsed.tool_content,
            "reasoning": parsed.reasoning,
        },
        "complete": parsed.is_complete,
        "download": {
            "filename": download_filename(parsed.title),
            "content": render_download(parsed),
        },
    }
