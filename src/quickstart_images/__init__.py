"""quickstart-images — provision the container images required by the quorum dev quickstart."""

from quickstart_images.constants import __version__
from quickstart_images.core.models import ImageManifest, ImageManifestEntry, ImportResult, ResultStatus
from quickstart_images.core.orchestrator import ImportOrchestrator, Stage

__all__ = [
    "__version__",
    "ImageManifest",
    "ImageManifestEntry",
    "ImportOrchestrator",
    "ImportResult",
    "ResultStatus",
    "Stage",
]
