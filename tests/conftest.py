"""Pytest configuration and fixtures."""

import os
import threading
from pathlib import Path

import pytest

from quickstart_images.auth import AccessToken
from quickstart_images.core.models import ImageManifest


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep the developer's env vars and config file out of every test."""
    for name in list(os.environ):
        if name.startswith("QUORUM_DEV_QUICKSTART_"):
            monkeypatch.delenv(name)
    monkeypatch.setattr(
        "quickstart_images.config.DEFAULT_CONFIG_PATH", tmp_path / "no-such-config.yaml"
    )


class FakeTokenProvider:
    def __init__(self, token="test-token", error=None):
        self.token = token
        self.error = error
        self.calls = 0

    def get_access_token(self):
        self.calls += 1
        if self.error:
            raise self.error
        return AccessToken(token=self.token)


class FakeSource:
    """Manifest source that writes small archives into the working directory."""

    def __init__(self, manifest, manifest_error=None, download_errors=None):
        self.manifest = manifest
        self.manifest_error = manifest_error
        self.download_errors = download_errors or {}
        self.manifest_calls = []
        self.downloads = []
        self.work_dirs = []
        self._lock = threading.Lock()

    def fetch_manifest(self, token):
        self.manifest_calls.append(token)
        if self.manifest_error:
            raise self.manifest_error
        return self.manifest

    def download_image(self, token, entry, work_dir):
        with self._lock:
            self.downloads.append(entry.file_name)
            self.work_dirs.append(Path(work_dir))
        if entry.tag in self.download_errors:
            raise self.download_errors[entry.tag]
        path = Path(work_dir) / entry.file_name
        path.write_bytes(f"archive for {entry.tag}".encode())
        return path


class FakePresenceChecker:
    def __init__(self, present=()):
        self.present = set(present)
        self.checked = []
        self._lock = threading.Lock()

    def has_image_tag(self, tag):
        with self._lock:
            self.checked.append(tag)
        return tag in self.present


class RecordingLoader:
    """Image loader that records calls and detects overlapping loads."""

    def __init__(self, fail_on=None):
        self.fail_on = fail_on
        self.loaded = []
        self.existed_at_load = []
        self.previous_removed = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def load_image(self, path):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            path = Path(path)
            self.existed_at_load.append(path.exists())
            self.previous_removed.append(all(not p.exists() for p in self.loaded))
            if self.fail_on and path.name == self.fail_on:
                from quickstart_images.core.exceptions import LoadError

                raise LoadError(str(path), returncode=1, stderr="invalid tar header")
            self.loaded.append(path)
        finally:
            with self._lock:
                self.active -= 1


def make_manifest(*tags):
    """Build a manifest with one entry per tag (e.g. "besu:1" -> besu.tar)."""
    return ImageManifest.model_validate(
        {
            "images": [
                {
                    "tag": tag,
                    "url": f"https://x/{tag.split(':')[0]}.tar",
                    "fileName": f"{tag.split(':')[0]}.tar",
                }
                for tag in tags
            ]
        }
    )


@pytest.fixture
def sample_manifest():
    """The besu/tessera manifest used throughout the docs."""
    return ImageManifest.model_validate(
        {
            "images": [
                {"tag": "besu:1", "url": "https://x/besu.tar", "fileName": "besu.tar"},
                {"tag": "tessera:1", "url": "https://x/tessera.tar", "fileName": "tessera.tar"},
            ]
        }
    )


@pytest.fixture
def manifest_factory():
    return make_manifest


@pytest.fixture
def token_provider():
    return FakeTokenProvider()


@pytest.fixture
def source_factory():
    return FakeSource


@pytest.fixture
def presence_factory():
    return FakePresenceChecker


@pytest.fixture
def loader_factory():
    return RecordingLoader


@pytest.fixture
def token_provider_factory():
    return FakeTokenProvider
