"""Tests for the staging stores."""

import pytest

from icebreaker.core.config import Settings
from icebreaker.core.errors import ArtifactNotFound, CorruptArtifact, InvalidInput
from icebreaker.services.staging import (
    FileStagingStore,
    MemoryStagingStore,
    get_staging_store,
)


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryStagingStore()
    return FileStagingStore(str(tmp_path / "uploads"))


PAYLOAD = [
    {"name": "Alice Müller", "city": "Zürich", "education": [{"title": "ETH"}]},
    {"name": "Bob", "position": "Engineer", "followers": 1200, "about": None},
]


class TestStagingStore:
    """Behaviour shared by every StagingStore implementation."""

    def test_get_returns_what_was_put(self, store):
        store.put("job1", PAYLOAD)
        assert store.get("job1") == PAYLOAD

    def test_get_without_put_raises_not_found(self, store):
        with pytest.raises(ArtifactNotFound):
            store.get("job1")

    def test_get_after_delete_raises_not_found(self, store):
        store.put("job1", PAYLOAD)
        store.delete("job1")
        with pytest.raises(ArtifactNotFound):
            store.get("job1")

    def test_delete_absent_is_noop(self, store):
        store.delete("never-staged")
        assert not store.exists("never-staged")

    def test_put_overwrites(self, store):
        store.put("job1", {"a": 1})
        store.put("job1", {"a": 2})
        assert store.get("job1") == {"a": 2}

    def test_exists_tracks_lifecycle(self, store):
        assert not store.exists("job1")
        store.put("job1", {"a": 1})
        assert store.exists("job1")
        store.delete("job1")
        assert not store.exists("job1")

    def test_keys_are_independent(self, store):
        store.put("job1", {"a": 1})
        store.put("job2", {"b": 2})
        store.delete("job1")
        assert store.get("job2") == {"b": 2}

    def test_later_mutation_does_not_change_staged_payload(self, store):
        payload = {"a": [1, 2]}
        store.put("job1", payload)
        payload["a"].append(3)
        assert store.get("job1") == {"a": [1, 2]}

    @pytest.mark.parametrize("job_id", ["", "../etc/passwd", "a/b", "job 1", "job.json"])
    def test_rejects_unsafe_job_ids(self, store, job_id):
        with pytest.raises(InvalidInput):
            store.put(job_id, {"a": 1})


class TestFileStagingStore:
    """File-specific behaviour."""

    def test_creates_directory_and_json_file(self, tmp_path):
        directory = tmp_path / "nested" / "uploads"
        store = FileStagingStore(str(directory))

        store.put("s_abc123", {"a": 1})

        assert (directory / "s_abc123.json").exists()

    def test_delete_removes_file(self, tmp_path):
        store = FileStagingStore(str(tmp_path))
        store.put("s_abc123", {"a": 1})
        store.delete("s_abc123")
        assert not (tmp_path / "s_abc123.json").exists()

    def test_truncated_file_is_corrupt_artifact(self, tmp_path):
        (tmp_path / "s_abc123.json").write_text('[{"name": "Ali', encoding="utf-8")

        with pytest.raises(CorruptArtifact):
            FileStagingStore(str(tmp_path)).get("s_abc123")

    def test_put_leaves_no_temp_files(self, tmp_path):
        store = FileStagingStore(str(tmp_path))
        store.put("s_abc123", {"a": 1})
        store.put("s_abc123", {"a": 2})

        assert [p.name for p in tmp_path.iterdir()] == ["s_abc123.json"]
        assert store.get("s_abc123") == {"a": 2}

    def test_failed_write_keeps_previous_payload(self, tmp_path):
        store = FileStagingStore(str(tmp_path))
        store.put("s_abc123", {"a": 1})

        with pytest.raises(TypeError):
            store.put("s_abc123", {"a": object()})

        assert store.get("s_abc123") == {"a": 1}
        assert [p.name for p in tmp_path.iterdir()] == ["s_abc123.json"]


class TestGetStagingStore:
    def test_local_mode_uses_files(self, tmp_path):
        store = get_staging_store(Settings(staging_mode="local", staging_dir=str(tmp_path)))
        assert isinstance(store, FileStagingStore)
        assert store.directory == tmp_path

    def test_memory_mode(self):
        assert isinstance(get_staging_store(Settings(staging_mode="memory")), MemoryStagingStore)
