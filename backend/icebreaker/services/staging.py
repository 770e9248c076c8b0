import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Dict

from icebreaker.core.config import Settings
from icebreaker.core.errors import ArtifactNotFound, CorruptArtifact, InvalidInput

logger = logging.getLogger(__name__)

# job ids double as file names
_JOB_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def check_job_id(job_id: str) -> str:
    if not isinstance(job_id, str) or not _JOB_ID_RE.match(job_id):
        raise InvalidInput(f"Invalid job id: {job_id!r}")
    return job_id


def _decode(job_id: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError as e:
        raise CorruptArtifact(f"Staged data for job {job_id} is unreadable: {e}") from e


class StagingStore:
    """Holds one collected payload per job id between polling and analysis."""

    def put(self, job_id: str, payload: Any) -> None:
        raise NotImplementedError

    def get(self, job_id: str) -> Any:
        raise NotImplementedError

    def delete(self, job_id: str) -> None:
        raise NotImplementedError

    def exists(self, job_id: str) -> bool:
        raise NotImplementedError


class MemoryStagingStore(StagingStore):
    def __init__(self):
        self._items: Dict[str, str] = {}

    def put(self, job_id: str, payload: Any) -> None:
        self._items[check_job_id(job_id)] = json.dumps(payload)

    def get(self, job_id: str) -> Any:
        try:
            raw = self._items[check_job_id(job_id)]
        except KeyError:
            raise ArtifactNotFound(f"No staged data for job {job_id}") from None
        return _decode(job_id, raw)

    def delete(self, job_id: str) -> None:
        self._items.pop(check_job_id(job_id), None)

    def exists(self, job_id: str) -> bool:
        return check_job_id(job_id) in self._items


class FileStagingStore(StagingStore):
    def __init__(self, directory: str):
        self.directory = Path(directory)

    def _path(self, job_id: str) -> Path:
        return self.directory / f"{check_job_id(job_id)}.json"

    def put(self, job_id: str, payload: Any) -> None:
        path = self._path(job_id)
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.info("Staged snapshot %s at %s", job_id, path)

    def get(self, job_id: str) -> Any:
        path = self._path(job_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise ArtifactNotFound(f"No staged data for job {job_id}") from None
        return _decode(job_id, raw)

    def delete(self, job_id: str) -> None:
        path = self._path(job_id)
        path.unlink(missing_ok=True)
        logger.debug("Removed staged snapshot %s", job_id)

    def exists(self, job_id: str) -> bool:
        return self._path(job_id).exists()


def get_staging_store(settings: Settings) -> StagingStore:
    if settings.staging_mode == "memory":
        return MemoryStagingStore()
    return FileStagingStore(settings.staging_dir)
