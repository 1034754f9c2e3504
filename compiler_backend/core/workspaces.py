from __future__ import annotations

import logging
import shutil
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from compiler_backend.core.errors import WorkspaceCreationError, WorkspaceWriteError
from compiler_backend.domain import Job

logger = logging.getLogger(__name__)

SKETCH_DIRNAME = "sketch"
OUTPUT_DIRNAME = "output"
# arduino-cli requires the primary .ino to share its folder's name.
SKETCH_FILENAME = f"{SKETCH_DIRNAME}.ino"
HEX_ARTIFACT_NAME = f"{SKETCH_FILENAME}.hex"


class WorkspaceManager:
    """Creates, fills and removes per-job directory trees under ``builds_root``."""

    def __init__(self, builds_root: Path) -> None:
        self._builds_root = builds_root

    @property
    def builds_root(self) -> Path:
        return self._builds_root

    def create_workspace(self) -> Job:
        job_id = str(uuid.uuid4())
        root = self._builds_root / job_id
        sketch_dir = root / SKETCH_DIRNAME
        output_dir = root / OUTPUT_DIRNAME
        try:
            self._builds_root.mkdir(parents=True, exist_ok=True)
            # exist_ok=False on the job root: a clash must never reuse another job's tree.
            root.mkdir()
            sketch_dir.mkdir()
            output_dir.mkdir()
        except OSError as exc:
            raise WorkspaceCreationError(f"cannot create workspace {root}: {exc}") from exc

        return Job(
            job_id=job_id,
            workspace_root=root,
            sketch_dir=sketch_dir,
            sketch_path=sketch_dir / SKETCH_FILENAME,
            output_dir=output_dir,
        )

    def write_source(self, job: Job, source_text: str) -> None:
        try:
            with job.sketch_path.open("w", encoding="utf-8", newline="") as fp:
                fp.write(source_text)
        except OSError as exc:
            raise WorkspaceWriteError(f"cannot write sketch {job.sketch_path}: {exc}") from exc

    def locate_artifact(self, job: Job, expected_name: str) -> Path | None:
        """Return the output file called ``expected_name`` if the toolchain produced it."""

        candidate = job.output_dir / Path(expected_name).name
        return candidate if candidate.is_file() else None

    def destroy_workspace(self, job: Job) -> None:
        """Remove the job tree (best-effort, never raises)."""

        try:
            shutil.rmtree(job.workspace_root)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Cleanup of workspace %s failed: %s", job.workspace_root, exc)

    @contextmanager
    def workspace(self) -> Iterator[Job]:
        """Yield a fresh job whose tree is removed on every exit path."""

        job = self.create_workspace()
        try:
            yield job
        finally:
            self.destroy_workspace(job)
