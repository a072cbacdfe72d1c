"""Pytest fixtures for drive replica verifier tests."""

import os
from typing import Callable, Dict, Optional

import fakeredis
import pytest

from driveverify.config import Settings
from driveverify.io.gdrive_cli import CommandResult
from driveverify.storage.job_store import JobStore
from driveverify.verification.orchestrator import VerificationOrchestrator


def write_tree(root: str, files: Dict[str, bytes]) -> str:
    """Create files (relative path -> content) under root. Paths ending in / are dirs."""
    os.makedirs(root, exist_ok=True)
    for rel, content in files.items():
        path = os.path.join(root, rel)
        if rel.endswith("/"):
            os.makedirs(path, exist_ok=True)
            continue
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(content)
    return root


class StubCli:
    """Stands in for GdriveCli: 'downloads' in-memory trees keyed by folder id."""

    def __init__(self, trees: Optional[Dict[str, Dict[str, bytes]]] = None, ready: bool = True):
        self.trees = trees or {}
        self.ready = ready
        self.downloads = []
        self.fail_ids = set()
        self.on_download: Optional[Callable[[str, str], None]] = None
        # Wraps each progress event: around_progress(filename, on_progress)
        self.around_progress: Optional[Callable[[str, Callable[[str], None]], None]] = None

    def download(self, folder_id, target_dir, on_progress=None):
        self.downloads.append((folder_id, target_dir))
        if self.on_download is not None:
            self.on_download(folder_id, target_dir)
        if folder_id in self.fail_ids or folder_id not in self.trees:
            return CommandResult(args=["gdrive", "download", folder_id], returncode=1)
        root = os.path.join(target_dir, f"folder-{folder_id}")
        os.makedirs(root, exist_ok=True)
        for rel, content in self.trees[folder_id].items():
            write_tree(root, {rel: content})
            if on_progress is None or rel.endswith("/"):
                continue
            if self.around_progress is not None:
                self.around_progress(rel, on_progress)
            else:
                on_progress(rel)
        return CommandResult(args=["gdrive", "download", folder_id], returncode=0)

    def is_ready(self):
        return self.ready


@pytest.fixture
def redis_client():
    client = fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
    yield client
    client.flushall()


@pytest.fixture
def store(redis_client) -> JobStore:
    return JobStore(redis_client, key_prefix="verify-", registration_ttl=300, job_ttl=1800)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        temp_dir=str(tmp_path / "work"),
        download_cache_dir=str(tmp_path / "cache"),
        cache_downloaded_files=False,
        cleanup_on_error=True,
        _env_file=None,
    )


@pytest.fixture
def stub_cli() -> StubCli:
    return StubCli()


@pytest.fixture
def orchestrator(store, stub_cli, test_settings) -> VerificationOrchestrator:
    os.makedirs(test_settings.temp_dir, exist_ok=True)
    return VerificationOrchestrator(store, stub_cli, settings=test_settings)


SRC_URL = "https://drive.google.com/drive/folders/SRC_folder-1"
DST_URL = "https://drive.google.com/drive/folders/DST_folder-2"
