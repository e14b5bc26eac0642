"""Tests for state repositories."""

from pathlib import Path

from portplan.repository import FileStateRepository, MemoryStateRepository
from tests.conftest import make_state, project


class TestFileStateRepository:
    """Tests for the file-backed repository."""

    def test_missing_file_reads_as_none(self, tmp_path: Path):
        assert FileStateRepository(tmp_path / "state.json").get() is None

    def test_put_then_get(self, tmp_path: Path):
        repository = FileStateRepository(tmp_path / "state.yaml")
        state = make_state(project(1, "Radar", X=1.0))
        repository.put(state)
        assert repository.get() == state


class TestMemoryStateRepository:
    """Tests for the in-memory repository."""

    def test_empty(self):
        assert MemoryStateRepository().get() is None

    def test_counts_writes(self):
        repository = MemoryStateRepository()
        repository.put(make_state())
        repository.put(make_state(project(1)))
        assert repository.writes == 2
        assert repository.get() == make_state(project(1))
