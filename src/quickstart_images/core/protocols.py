"""Interfaces of the collaborators the import orchestrator depends on."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from quickstart_images.auth import AccessToken
    from quickstart_images.core.models import ImageManifest, ImageManifestEntry


@runtime_checkable
class TokenProvider(Protocol):
    """Supplies the bearer credential for a run."""

    def get_access_token(self) -> AccessToken:
        ...


@runtime_checkable
class ImagePresenceChecker(Protocol):
    """Answers whether an image tag already exists in the local runtime."""

    def has_image_tag(self, tag: str) -> bool:
        ...


@runtime_checkable
class ImageLoader(Protocol):
    """Registers a local image archive with the container runtime."""

    def load_image(self, path: str | Path) -> None:
        ...


@runtime_checkable
class ManifestSource(Protocol):
    """Fetches the manifest and streams the archives it lists."""

    def fetch_manifest(self, token: str) -> ImageManifest:
        ...

    def download_image(self, token: str, entry: ImageManifestEntry, work_dir: str | Path) -> Path:
        ...
