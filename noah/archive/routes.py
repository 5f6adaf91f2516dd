from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from noah.archive.models import ConversationTurn, TurnRole
from noah.archive.service import get_archive_service
from noah.common.session import resolve_session_id, session_headers
from noah.config import runtime_config

logger = logging.getLogger(__name__)

VALID_QUERY_TYPES = ("stats", "recent", "conversations", "artifacts")
INVALID_TYPE_MESSAGE = "Invalid type parameter. Use: stats, recent, conversations, or artifacts"
QUERY_FAILED_MESSAGE = "Failed to retrieve archive data"
MAX_WINDOW_DAYS = 3650

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

router = APIRouter(tags=["archive"])


def parse_days(raw: Optional[str]) -> int:
    """Lenient integer parse: leading digits count, anything else uses the default window."""
    default = runtime_config.get_default_window_days()
    if raw is None:
        return default
    match = _LEADING_INT.match(raw)
    if not match:
        return default
    value = int(match.group(1))
    if value <= 0:
        return default
    return min(value, MAX_WINDOW_DAYS)


@router.get("/archive-query")
def archive_query(
    query_type: str = Query("stats", alias="type"),
    days: Optional[str] = None,
):
    query_type = query_type or "stats"
    if query_type not in VALID_QUERY_TYPES:
        return JSONResponse(status_code=400, content={"error": INVALID_TYPE_MESSAGE})

    window = parse_days(days)
    try:
        svc = get_archive_service()
        if query_type == "stats":
            return {"stats": svc.get_archive_stats().model_dump(mode="json")}
        logs = svc.get_recent_logs(window).model_dump(mode="json")
    except Exception:
        logger.exception("Archive query failed (type=%s, days=%s)", query_type, window)
        return JSONResponse(status_code=500, content={"error": QUERY_FAILED_MESSAGE})

    if query_type == "recent":
        return {"logs": logs}
    return {query_type: logs[query_type]}


class ConversationLogRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    role: TurnRole
    content: str
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    timestamp: Optional[datetime] = None


@router.post("/conversation-log")
async def conversation_log(request: Request):
    try:
        payload = ConversationLogRequest.model_validate(await request.json())
    except ValueError as exc:
        logger.warning("Rejected conversation log body: %s", exc)
        return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})

    session_id = resolve_session_id(request, payload.session_id)
    fields = {"session_id": session_id, "role": payload.role, "content": payload.content}
    if payload.timestamp is not None:
        fields["timestamp"] = payload.timestamp
    try:
        result = get_archive_service().log_turn(ConversationTurn(**fields))
        logger.info("Conversation turn for session %s archived: %s", session_id, result.outcome.value)
    except Exception as exc:
        logger.error("Archive unavailable, turn for session %s not stored: %s", session_id, exc)
    return JSONResponse(
        content={"success": True, "message": "Conversation turn logged successfully"},
        headers=session_headers(session_id),
    )
