from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ArchiveBackend(str, Enum):
    remote = "firestore"
    local = "local"


class TurnRole(str, Enum):
    user = "user"
    assistant = "assistant"


class SessionRecord(BaseModel):
    session_id: str
    created_at: datetime = Field(default_factory=_now)
    last_seen_at: datetime = Field(default_factory=_now)


class ConversationTurn(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    session_id: str
    role: TurnRole
    content: str
    timestamp: datetime = Field(default_factory=_now)

    @field_validator("timestamp")
    @classmethod
    def timestamp_as_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class ArtifactRecord(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    session_id: str
    title: str
    content: str
    reasoning_text: str = ""
    user_input: str = ""
    generation_time_ms: float = Field(default=0, allow_inf_nan=False)
    created_at: datetime = Field(default_factory=_now)

    @field_validator("created_at")
    @classmethod
    def created_at_as_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class ArchiveStats(BaseModel):
    total_sessions: int = 0
    total_conversations: int = 0
    total_artifacts: int = 0
    recent_artifacts: int = 0
    window_days: int = 7


class RecentLogs(BaseModel):
    conversations: List[ConversationTurn] = Field(default_factory=list)
    artifacts: List[ArtifactRecord] = Field(default_factory=list)


class WriteOutcome(str, Enum):
    persisted = "persisted"
    fell_back_local = "fell_back_local"
    dropped = "dropped"


class WriteResult(BaseModel):
    outcome: WriteOutcome
    backend: Optional[ArchiveBackend] = None
    reason: Optional[str] = None

    @property
    def stored(self) -> bool:
        return self.outcome is not WriteOutcome.dropped
