from __future__ import annotations

import pytest

from noah.archive.errors import ConnectivityError
from noah.archive.models import ArchiveBackend, ArtifactRecord, ConversationTurn, TurnRole, WriteOutcome
from noah.archive.repository import FilesystemArchiveRepository, InMemoryArchiveRepository
from noah.archive.service import ArchiveService, archive_service_from_env


class _FailingRepo(InMemoryArchiveRepository):
    def __init__(self, exc: Exception) -> None:
        super().__init__()
        self.exc = exc
        self.calls = 0

    def record_artifact(self, artifact):
        self.calls += 1
        raise self.exc

    def record_turn(self, turn):
        self.calls += 1
        raise self.exc

    def get_recent_logs(self, days, now=None):
        raise self.exc

    def get_archive_stats(self, window_days=7):
        raise self.exc


def _artifact(**overrides):
    fields = {"session_id": "s1", "title": "Tool", "content": "body"}
    fields.update(overrides)
    return ArtifactRecord(**fields)


def test_remote_write_persists_without_touching_local():
    local, remote = InMemoryArchiveRepository(), InMemoryArchiveRepository()
    svc = ArchiveService(local=local, remote=remote)
    result = svc.log_artifact(_artifact())
    assert result.outcome is WriteOutcome.persisted
    assert result.backend is ArchiveBackend.remote
    assert remote.get_archive_stats().total_artifacts == 1
    assert local.get_archive_stats().total_artifacts == 0


def test_remote_failure_falls_back_to_local_once():
    local = InMemoryArchiveRepository()
    remote = _FailingRepo(ConnectivityError("unreachable"))
    svc = ArchiveService(local=local, remote=remote)
    result = svc.log_artifact(_artifact())
    assert result.outcome is WriteOutcome.fell_back_local
    assert result.backend is ArchiveBackend.local
    assert "unreachable" in result.reason
    assert remote.calls == 1
    assert local.get_archive_stats().total_artifacts == 1


def test_every_store_failing_is_reported_as_dropped_not_raised():
    svc = ArchiveService(local=_FailingRepo(OSError("disk")), remote=_FailingRepo(RuntimeError("boom")))
    for _ in range(3):
        result = svc.log_artifact(_artifact())
        assert result.outcome is WriteOutcome.dropped
        assert result.stored is False


def test_local_primary_skips_remote():
    local, remote = InMemoryArchiveRepository(), _FailingRepo(RuntimeError("never"))
    svc = ArchiveService(local=local, remote=remote, primary_backend=ArchiveBackend.local)
    turn = ConversationTurn(session_id="s1", role=TurnRole.user, content="hello")
    assert svc.log_turn(turn).outcome is WriteOutcome.persisted
    assert remote.calls == 0


def test_missing_remote_falls_back_to_local():
    local = InMemoryArchiveRepository()
    result = ArchiveService(local=local, remote=None).log_artifact(_artifact())
    assert result.outcome is WriteOutcome.fell_back_local
    assert result.reason == "remote_unconfigured"


@pytest.mark.parametrize("overrides", [{"title": "  "}, {"content": ""}])
def test_incomplete_artifacts_are_never_persisted(overrides):
    local, remote = InMemoryArchiveRepository(), InMemoryArchiveRepository()
    result = ArchiveService(local=local, remote=remote).log_artifact(_artifact(**overrides))
    assert result.outcome is WriteOutcome.dropped
    assert result.reason == "empty_title_or_content"
    assert remote.get_archive_stats().total_artifacts == 0
    assert local.get_archive_stats().total_artifacts == 0


def test_reads_go_to_selected_backend_only():
    local, remote = InMemoryArchiveRepository(), InMemoryArchiveRepository()
    remote.record_artifact(_artifact(title="remote-only"))
    local.record_artifact(_artifact(title="local-only"))

    local_reader = ArchiveService(local=local, remote=remote, read_backend=ArchiveBackend.local)
    assert [a.title for a in local_reader.get_recent_logs(7).artifacts] == ["local-only"]

    remote_reader = ArchiveService(local=local, remote=remote, read_backend=ArchiveBackend.remote)
    assert [a.title for a in remote_reader.get_recent_logs(7).artifacts] == ["remote-only"]
    assert remote_reader.get_archive_stats().total_artifacts == 1


def test_read_failures_propagate():
    svc = ArchiveService(
        local=InMemoryArchiveRepository(),
        remote=_FailingRepo(ConnectivityError("down")),
        read_backend=ArchiveBackend.remote,
    )
    with pytest.raises(ConnectivityError):
        svc.get_archive_stats()
    with pytest.raises(ConnectivityError):
        ArchiveService(local=InMemoryArchiveRepository(), read_backend=ArchiveBackend.remote).get_recent_logs(7)


def test_service_from_env_local_mode(monkeypatch, tmp_path):
    monkeypatch.setenv("ARCHIVE_PRIMARY_BACKEND", "local")
    monkeypatch.setenv("ARCHIVE_READ_BACKEND", "local")
    monkeypatch.setenv("ARCHIVE_LOCAL_DIR", str(tmp_path))
    svc = archive_service_from_env()
    assert svc.primary_backend is ArchiveBackend.local
    assert svc.remote is None
    assert isinstance(svc.local, FilesystemArchiveRepository)
    assert svc.local.root == tmp_path


def test_service_from_env_without_firestore_project_degrades(monkeypatch, tmp_path):
    monkeypatch.setenv("ARCHIVE_PRIMARY_BACKEND", "firestore")
    monkeypatch.setenv("ARCHIVE_LOCAL_DIR", str(tmp_path))
    monkeypatch.delenv("GCP_PROJECT_ID", raising=False)
    monkeypatch.delenv("GCP_PROJECT", raising=False)
    svc = archive_service_from_env()
    assert svc.remote is None
    assert svc.log_artifact(_artifact()).outcome is WriteOutcome.fell_back_local


def test_service_from_env_rejects_unknown_backend(monkeypatch):
    monkeypatch.setenv("ARCHIVE_READ_BACKEND", "supabase")
    with pytest.raises(RuntimeError):
        archive_service_from_env()
