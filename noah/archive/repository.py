from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Type, TypeVar

from pydantic import BaseModel, ValidationError

from noah.archive.errors import ConnectivityError, SchemaError, StorageError
from noah.archive.models import (
    ArchiveStats,
    ArtifactRecord,
    ConversationTurn,
    RecentLogs,
    SessionRecord,
)
from noah.config import runtime_config

logger = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)
_ResultT = TypeVar("_ResultT")


def _window_start(days: int, now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now - timedelta(days=days)


def _oldest_first_turns(turns: Iterable[ConversationTurn]) -> List[ConversationTurn]:
    # sorted() is stable, so equal timestamps keep insertion order
    return sorted(turns, key=lambda t: t.timestamp)


def _oldest_first_artifacts(artifacts: Iterable[ArtifactRecord]) -> List[ArtifactRecord]:
    return sorted(artifacts, key=lambda a: a.created_at)


def _build_stats(
    turns: List[ConversationTurn],
    artifacts: List[ArtifactRecord],
    window_days: int,
    session_count: Optional[int] = None,
) -> ArchiveStats:
    if session_count is None:
        session_ids = {t.session_id for t in turns} | {a.session_id for a in artifacts}
        session_count = len(session_ids)
    since = _window_start(window_days)
    return ArchiveStats(
        total_sessions=session_count,
        total_conversations=len(turns),
        total_artifacts=len(artifacts),
        recent_artifacts=len([a for a in artifacts if a.created_at >= since]),
        window_days=window_days,
    )


class ArchiveRepository(Protocol):
    def record_turn(self, turn: ConversationTurn) -> ConversationTurn: ...
    def record_artifact(self, artifact: ArtifactRecord) -> ArtifactRecord: ...
    def get_recent_logs(self, days: int, now: Optional[datetime] = None) -> RecentLogs: ...
    def get_archive_stats(self, window_days: int = runtime_config.DEFAULT_WINDOW_DAYS) -> ArchiveStats: ...


class InMemoryArchiveRepository:
    def __init__(self) -> None:
        self._turns: List[ConversationTurn] = []
        self._artifacts: List[ArtifactRecord] = []
        self._sessions: Dict[str, SessionRecord] = {}

    def _touch_session(self, session_id: str) -> None:
        existing = self._sessions.get(session_id)
        if existing:
            existing.last_seen_at = datetime.now(timezone.utc)
        else:
            self._sessions[session_id] = SessionRecord(session_id=session_id)

    def record_turn(self, turn: ConversationTurn) -> ConversationTurn:
        self._touch_session(turn.session_id)
        self._turns.append(turn)
        return turn

    def record_artifact(self, artifact: ArtifactRecord) -> ArtifactRecord:
        self._touch_session(artifact.session_id)
        self._artifacts.append(artifact)
        return artifact

    def get_recent_logs(self, days: int, now: Optional[datetime] = None) -> RecentLogs:
        since = _window_start(days, now)
        return RecentLogs(
            conversations=_oldest_first_turns(t for t in self._turns if t.timestamp >= since),
            artifacts=_oldest_first_artifacts(a for a in self._artifacts if a.created_at >= since),
        )

    def get_archive_stats(self, window_days: int = runtime_config.DEFAULT_WINDOW_DAYS) -> ArchiveStats:
        return _build_stats(self._turns, self._artifacts, window_days, session_count=len(self._sessions))


class FilesystemArchiveRepository:
    """Append-only JSONL archive; the low-volume local fallback store."""

    _conversations_file = "conversations.jsonl"
    _artifacts_file = "artifacts.jsonl"

    def __init__(self, root: Optional[str | Path] = None) -> None:
        self._root = Path(root) if root else runtime_config.get_archive_local_dir()
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"cannot create archive dir {self._root}: {exc}") from exc

    @property
    def root(self) -> Path:
        return self._root

    def _append(self, name: str, record: BaseModel) -> None:
        path = self._root / name
        try:
            with path.open("a", encoding="utf-8") as fh:
                fh.write(record.model_dump_json() + "\n")
        except OSError as exc:
            raise StorageError(f"append to {path} failed: {exc}") from exc

    def _load(self, name: str, model: Type[_ModelT]) -> List[_ModelT]:
        path = self._root / name
        if not path.exists():
            return []
        items: List[_ModelT] = []
        try:
            with path.open("r", encoding="utf-8") as fh:
                for raw in fh:
                    raw = raw.strip()
                    if not raw:
                        continue
                    items.append(model(**json.loads(raw)))
        except OSError as exc:
            raise StorageError(f"read of {path} failed: {exc}") from exc
        except (json.JSONDecodeError, ValidationError) as exc:
            raise StorageError(f"corrupt record in {path}: {exc}") from exc
        return items

    def record_turn(self, turn: ConversationTurn) -> ConversationTurn:
        self._append(self._conversations_file, turn)
        return turn

    def record_artifact(self, artifact: ArtifactRecord) -> ArtifactRecord:
        self._append(self._artifacts_file, artifact)
        return artifact

    def get_recent_logs(self, days: int, now: Optional[datetime] = None) -> RecentLogs:
        since = _window_start(days, now)
        turns = self._load(self._conversations_file, ConversationTurn)
        artifacts = self._load(self._artifacts_file, ArtifactRecord)
        return RecentLogs(
            conversations=_oldest_first_turns(t for t in turns if t.timestamp >= since),
            artifacts=_oldest_first_artifacts(a for a in artifacts if a.created_at >= since),
        )

    def get_archive_stats(self, window_days: int = runtime_config.DEFAULT_WINDOW_DAYS) -> ArchiveStats:
        turns = self._load(self._conversations_file, ConversationTurn)
        artifacts = self._load(self._artifacts_file, ArtifactRecord)
        return _build_stats(turns, artifacts, window_days)


class FirestoreArchiveRepository:
    """Firestore-backed archive with sessions, conversations and artifacts collections.

    Reads are ordered by timestamp only; documents sharing a timestamp come
    back in the order Firestore streams them (document id), not insertion order.
    """

    _sessions_collection = "archive_sessions"
    _conversations_collection = "archive_conversations"
    _artifacts_collection = "archive_artifacts"

    def __init__(self, client: Optional[object] = None) -> None:
        self._client = client or self._default_client()

    def _default_client(self) -> object:  # pragma: no cover - optional dep
        try:
            from google.cloud import firestore  # type: ignore
        except Exception as exc:
            raise RuntimeError("google-cloud-firestore not installed") from exc
        project = runtime_config.get_firestore_project()
        if not project:
            raise RuntimeError("GCP project is required for Firestore archive repo")
        return firestore.Client(project=project)  # type: ignore[arg-type]

    def _col(self, name: str):
        return self._call(f"collection {name}", lambda: self._client.collection(name))

    @staticmethod
    def _call(op: str, fn: Callable[[], _ResultT]) -> _ResultT:
        try:
            return fn()
        except Exception as exc:
            raise ConnectivityError(f"firestore {op} failed: {exc}") from exc

    @staticmethod
    def _to_models(op: str, model: Type[_ModelT], docs: Iterable[object]) -> List[_ModelT]:
        items: List[_ModelT] = []
        for doc in docs:
            try:
                items.append(model(**(doc.to_dict() or {})))
            except (ValidationError, TypeError, AttributeError) as exc:
                raise SchemaError(f"firestore {op} returned malformed document: {exc}") from exc
        return items

    def _touch_session(self, session_id: str) -> None:
        doc = self._col(self._sessions_collection).document(session_id)
        snap = self._call("session lookup", doc.get)
        if snap and getattr(snap, "exists", False):
            self._call("session touch", lambda: doc.update({"last_seen_at": datetime.now(timezone.utc)}))
            return
        session = SessionRecord(session_id=session_id)
        self._call("session create", lambda: doc.set(session.model_dump()))
        logger.debug("Created archive session %s", session_id)

    def record_turn(self, turn: ConversationTurn) -> ConversationTurn:
        self._touch_session(turn.session_id)
        doc = self._col(self._conversations_collection).document(turn.id)
        self._call("conversation write", lambda: doc.set(turn.model_dump()))
        return turn

    def record_artifact(self, artifact: ArtifactRecord) -> ArtifactRecord:
        self._touch_session(artifact.session_id)
        doc = self._col(self._artifacts_collection).document(artifact.id)
        self._call("artifact write", lambda: doc.set(artifact.model_dump()))
        return artifact

    def _stream(self, op: str, query) -> List[object]:
        return self._call(op, lambda: list(query.stream()))

    def get_recent_logs(self, days: int, now: Optional[datetime] = None) -> RecentLogs:
        since = _window_start(days, now)
        turn_docs = self._stream(
            "conversation query", self._col(self._conversations_collection).where("timestamp", ">=", since)
        )
        artifact_docs = self._stream(
            "artifact query", self._col(self._artifacts_collection).where("created_at", ">=", since)
        )
        return RecentLogs(
            conversations=_oldest_first_turns(self._to_models("conversation query", ConversationTurn, turn_docs)),
            artifacts=_oldest_first_artifacts(self._to_models("artifact query", ArtifactRecord, artifact_docs)),
        )

    def get_archive_stats(self, window_days: int = runtime_config.DEFAULT_WINDOW_DAYS) -> ArchiveStats:
        session_docs = self._stream("session scan", self._col(self._sessions_collection))
        turns = self._to_models(
            "conversation scan", ConversationTurn, self._stream("conversation scan", self._col(self._conversations_collection))
        )
        artifacts = self._to_models(
            "artifact scan", ArtifactRecord, self._stream("artifact scan", self._col(self._artifacts_collection))
        )
        return _build_stats(turns, artifacts, window_days, session_count=len(session_docs))
