"""Archive facade: routes writes to the primary store with local fallback, reads to one selected store."""
from __future__ import annotations

import logging
from typing import Callable, Optional

from noah.archive.errors import ConnectivityError
from noah.archive.models import (
    ArchiveBackend,
    ArchiveStats,
    ArtifactRecord,
    ConversationTurn,
    RecentLogs,
    WriteOutcome,
    WriteResult,
)
from noah.archive.repository import (
    ArchiveRepository,
    FilesystemArchiveRepository,
    FirestoreArchiveRepository,
)
from noah.config import runtime_config

logger = logging.getLogger(__name__)


def _backend(name: str, setting: str) -> ArchiveBackend:
    try:
        return ArchiveBackend(name)
    except ValueError as exc:
        raise RuntimeError(f"{setting} must be one of firestore|local, got {name!r}") from exc


class ArchiveService:
    def __init__(
        self,
        local: ArchiveRepository,
        remote: Optional[ArchiveRepository] = None,
        primary_backend: ArchiveBackend = ArchiveBackend.remote,
        read_backend: ArchiveBackend = ArchiveBackend.local,
    ) -> None:
        self.local = local
        self.remote = remote
        self.primary_backend = primary_backend
        self.read_backend = read_backend

    # --- Writes ---
    def log_artifact(self, artifact: ArtifactRecord) -> WriteResult:
        if not artifact.title.strip() or not artifact.content.strip():
            logger.info("Dropping artifact for session %s: empty title or content", artifact.session_id)
            return WriteResult(outcome=WriteOutcome.dropped, reason="empty_title_or_content")
        return self._write(
            "artifact",
            artifact.session_id,
            lambda repo: repo.record_artifact(artifact),
        )

    def log_turn(self, turn: ConversationTurn) -> WriteResult:
        return self._write("conversation turn", turn.session_id, lambda repo: repo.record_turn(turn))

    def _write(self, kind: str, session_id: str, write: Callable[[ArchiveRepository], object]) -> WriteResult:
        if self.primary_backend is ArchiveBackend.local:
            return self._write_local(kind, session_id, write, WriteOutcome.persisted, None)

        if self.remote is None:
            return self._write_local(kind, session_id, write, WriteOutcome.fell_back_local, "remote_unconfigured")

        try:
            write(self.remote)
            return WriteResult(outcome=WriteOutcome.persisted, backend=ArchiveBackend.remote)
        except Exception as exc:
            logger.warning("Remote %s write failed for session %s, falling back to local: %s", kind, session_id, exc)
            return self._write_local(kind, session_id, write, WriteOutcome.fell_back_local, str(exc))

    def _write_local(
        self,
        kind: str,
        session_id: str,
        write: Callable[[ArchiveRepository], object],
        outcome: WriteOutcome,
        reason: Optional[str],
    ) -> WriteResult:
        try:
            write(self.local)
        except Exception as exc:
            logger.error("Local %s write failed for session %s; record dropped: %s", kind, session_id, exc)
            return WriteResult(outcome=WriteOutcome.dropped, reason=str(exc))
        return WriteResult(outcome=outcome, backend=ArchiveBackend.local, reason=reason)

    # --- Reads ---
    def _reader(self) -> ArchiveRepository:
        if self.read_backend is ArchiveBackend.local:
            return self.local
        if self.remote is None:
            raise ConnectivityError("remote archive backend is not configured")
        return self.remote

    def get_archive_stats(self) -> ArchiveStats:
        return self._reader().get_archive_stats(window_days=runtime_config.get_default_window_days())

    def get_recent_logs(self, days: int) -> RecentLogs:
        return self._reader().get_recent_logs(days)


def archive_service_from_env() -> ArchiveService:
    primary = _backend(runtime_config.get_archive_primary_backend(), "ARCHIVE_PRIMARY_BACKEND")
    read = _backend(runtime_config.get_archive_read_backend(), "ARCHIVE_READ_BACKEND")
    local = FilesystemArchiveRepository(runtime_config.get_archive_local_dir())
    remote: Optional[ArchiveRepository] = None
    if ArchiveBackend.remote in (primary, read):
        try:
            remote = FirestoreArchiveRepository()
        except Exception as exc:
            logger.warning("Firestore archive unavailable, remote writes will fall back to local: %s", exc)
    return ArchiveService(local=local, remote=remote, primary_backend=primary, read_backend=read)


_default_service: Optional[ArchiveService] = None


def get_archive_service() -> ArchiveService:
    global _default_service
    if _default_service is None:
        _default_service = archive_service_from_env()
    return _default_service


def set_archive_service(service: Optional[ArchiveService]) -> None:
    global _default_service
    _default_service = service
