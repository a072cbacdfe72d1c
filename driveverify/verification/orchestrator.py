"""Folder replica verification orchestrator.

Owns a verification job from registration to a terminal state:

1. Resolve both folder ids and write the initial job record
2. Download the source folder, then the destination folder, via gdrive
3. Compare the two trees
4. Persist the verdict (success / failed + diff) or the error
5. Remove the downloaded trees
"""

import asyncio
import logging
import os
import shutil
import tempfile
import uuid
from typing import Any, Dict, List, Optional

from driveverify.config import Settings, settings as default_settings
from driveverify.errors import DownloadError, InvalidTransitionError, JobExpiredError
from driveverify.io.gdrive_cli import GdriveCli
from driveverify.jobs.dispatcher import JobDispatcher
from driveverify.jobs.models import DiffResult, JobState, RegisterResult
from driveverify.storage.job_store import JobStore
from driveverify.verification.comparator import compare_tree, first_entry
from driveverify.verification.folder_id import extract_folder_id, sanity_check

logger = logging.getLogger(__name__)


class VerificationOrchestrator:
    """Registers verification jobs and runs them to completion."""

    def __init__(
        self,
        store: JobStore,
        cli: GdriveCli,
        dispatcher: Optional[JobDispatcher] = None,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.cli = cli
        self.dispatcher = dispatcher
        self.settings = settings or default_settings

    # ==================== REGISTRATION ====================

    async def register(
        self, src_folder_url: str, dst_folder_url: str, perform_now: bool = False
    ) -> RegisterResult:
        """Create a job record and schedule the verification.

        Runs the job inline (in a worker thread) when perform_now is set or no
        dispatcher is configured. Any failure is returned, not raised.
        """
        job_id: Optional[str] = None
        try:
            src_folder_id = extract_folder_id(src_folder_url)
            dst_folder_id = extract_folder_id(dst_folder_url)
            job_id = str(uuid.uuid4())
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(
                None, self.store.initialize, job_id, src_folder_id, dst_folder_id
            )
            logger.info(f"Registered job {job_id}: {src_folder_id} -> {dst_folder_id}")

            if perform_now or self.dispatcher is None:
                await loop.run_in_executor(None, self.run, job_id, src_folder_id, dst_folder_id)
            else:
                await self.dispatcher.submit(job_id, self.run, job_id, src_folder_id, dst_folder_id)
        except Exception as e:
            msg = f"Failed to register job: {e}"
            logger.error(msg)
            if job_id is not None and not perform_now:
                self._discard_record(job_id)
            return RegisterResult(success=False, message=msg)

        return RegisterResult(success=True, job_id=job_id)

    def _discard_record(self, job_id: str) -> None:
        try:
            self.store.delete(job_id)
        except Exception as e:
            logger.warning(f"Could not discard record of job {job_id}: {e}")

    # ==================== EXECUTION ====================

    def run(self, job_id: str, src_folder_id: str, dst_folder_id: str) -> None:
        """Execute a job once. Failures end in the error state, never raise."""
        downloaded: List[str] = []
        try:
            self.perform(job_id, src_folder_id, dst_folder_id, downloaded=downloaded)
        except Exception as e:
            logger.warning(f"Failed job {job_id} ({src_folder_id} -> {dst_folder_id}): {e}")
            self.on_failure(job_id, str(e), downloaded=downloaded)

    def perform(
        self,
        job_id: str,
        src_folder_id: str,
        dst_folder_id: str,
        downloaded: Optional[List[str]] = None,
    ) -> DiffResult:
        """Download both folders and compare them.

        downloaded collects each finished download path, so the caller can
        still clean up if the record disappears mid-job.
        """
        if downloaded is None:
            downloaded = []

        logger.info("Downloading src folder")
        self._set_state(job_id, JobState.DOWNLOAD_SRC)
        src_folder_path = self.download_folder(job_id, src_folder_id)
        downloaded.append(src_folder_path)
        self._set_fields(job_id, src_folder_path=src_folder_path)

        logger.info("Downloading dst folder")
        self._set_state(job_id, JobState.DOWNLOAD_DST)
        dst_folder_path = self.download_folder(job_id, dst_folder_id)
        downloaded.append(dst_folder_path)
        self._set_fields(job_id, dst_folder_path=dst_folder_path)

        self._set_state(job_id, JobState.COMPARE)
        return self.compare_folders(job_id, src_folder_path, dst_folder_path)

    def compare_folders(self, job_id: str, src_folder_path: str, dst_folder_path: str) -> DiffResult:
        diff = compare_tree(
            DiffResult(),
            first_entry(src_folder_path),
            first_entry(dst_folder_path),
        )
        if diff.is_empty:
            logger.info(f"Compare success: {job_id}")
            final_state = JobState.SUCCESS
        else:
            logger.error(f"Compare failed: {job_id}")
            logger.error(f"List of missing files: {diff.missing}")
            logger.error(f"List of mismatch files: {diff.mismatch}")
            final_state = JobState.FAILED
        self._set_state(job_id, final_state, diff_json=diff.model_dump_json())

        if not self.settings.cache_downloaded_files:
            self.cleanup_path(src_folder_path)
            self.cleanup_path(dst_folder_path)
        return diff

    def download_folder(self, job_id: str, folder_id: str) -> str:
        """Download a folder and return the local directory holding it.

        With caching on, the download lands in a scratch directory next to
        the cache entry and is renamed into place only once it completed.
        """
        sanity_check(folder_id)
        cache_folder = None
        if self.settings.cache_downloaded_files:
            cache_folder = os.path.join(self.settings.download_cache_dir, folder_id)
            if os.path.isdir(cache_folder):
                logger.info(f"Cache enabled and folder exists, skipping {folder_id}")
                return cache_folder
            os.makedirs(self.settings.download_cache_dir, exist_ok=True)
            base_folder = tempfile.mkdtemp(
                prefix=f"{folder_id}.partial-", dir=self.settings.download_cache_dir
            )
        else:
            base_folder = tempfile.mkdtemp(prefix="driveverify-", dir=self.settings.temp_dir)

        def on_progress(filename: str) -> None:
            if not self.store.exists(job_id):
                raise JobExpiredError(job_id)
            self.store.increment(job_id, "download_count")
            self.store.set_field(job_id, "comment", f"Last item: {filename}")
            self.store.touch_ttl(job_id)

        logger.info(f"Downloading to {base_folder}")
        try:
            result = self.cli.download(folder_id, base_folder, on_progress=on_progress)
            if not result.success:
                raise DownloadError(folder_id, result.describe())
            if cache_folder is not None:
                os.rename(base_folder, cache_folder)
                base_folder = cache_folder
        except Exception:
            # Not recorded in the job yet, so the error handler can't see it
            self.cleanup_path(base_folder)
            raise
        return base_folder

    def _require_record(self, job_id: str) -> JobState:
        state = self.store.get(job_id).state
        if state is None:
            raise JobExpiredError(job_id)
        return state

    def _set_fields(self, job_id: str, **fields: Any) -> None:
        self._require_record(job_id)
        self.store.set_fields(job_id, fields)
        self.store.touch_ttl(job_id)

    def _set_state(self, job_id: str, new_state: JobState, **fields: Any) -> None:
        current = self._require_record(job_id)
        if not current.can_transition_to(new_state):
            raise InvalidTransitionError(current.value, new_state.value)
        self.store.set_fields(job_id, {"state": new_state.value, **fields})
        self.store.touch_ttl(job_id)

    # ==================== FAILURE & CLEANUP ====================

    def on_failure(
        self, job_id: str, message: str, downloaded: Optional[List[str]] = None
    ) -> None:
        """Move a job to the error state and drop whatever it downloaded.

        An expired record is not recreated; only the local files are removed.
        """
        try:
            record = self.store.get(job_id)
            paths = {record.src_folder_path, record.dst_folder_path, *(downloaded or [])}
            if not record.is_known:
                logger.error(f"Job {job_id} has no record, not marking error: {message}")
            elif record.state is not None and record.state.is_terminal:
                logger.error(f"Job {job_id} already {record.state.value}, not marking error: {message}")
                return
            else:
                self.store.set_fields(job_id, {"state": JobState.ERROR.value, "comment": message})
                self.store.touch_ttl(job_id)
            if self.settings.cleanup_on_error:
                for path in sorted(p for p in paths if p):
                    self.cleanup_path(path)
        except Exception as e:
            logger.error(f"Error handler for job {job_id} failed: {e}")

    @staticmethod
    def cleanup_path(path: Optional[str]) -> None:
        """Best-effort recursive removal; failures are only logged."""
        if not path:
            return
        logger.info(f"Cleaning {path}")
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Failed to clean {path}: {e}")

    # ==================== QUERIES ====================

    def get_state(self, job_id: str) -> Dict[str, Any]:
        """Flat field map of a job; all values are None for unknown ids."""
        return self.store.get(job_id).as_fields()

    def is_ready(self) -> bool:
        return self.cli.is_ready()

    def clear_records(self) -> int:
        return self.store.delete_all_matching()
