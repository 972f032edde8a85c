"""Core import pipeline: models, errors, download coordination and orchestration."""

from quickstart_images.core.coordinator import DownloadCoordinator
from quickstart_images.core.exceptions import (
    AuthError,
    LoadError,
    ManifestError,
    ManifestUnavailableError,
    QuickstartImagesError,
    RuntimeNotFoundError,
)
from quickstart_images.core.models import ImageManifest, ImageManifestEntry, ImportResult, ResultStatus

__all__ = [
    "AuthError",
    "DownloadCoordinator",
    "ImageManifest",
    "ImageManifestEntry",
    "ImportResult",
    "LoadError",
    "ManifestError",
    "ManifestUnavailableError",
    "QuickstartImagesError",
    "ResultStatus",
    "RuntimeNotFoundError",
]
