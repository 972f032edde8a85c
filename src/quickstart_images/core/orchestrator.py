"""
Import orchestrator for quickstart images.

Sequences one provisioning run:

    authenticate -> fetch manifest -> select missing images
        -> download concurrently -> load and delete sequentially

and turns the outcome into a single ImportResult. This is the only place
where errors from the relay, the token provider or the container runtime
are translated into a user-facing message; the CLI maps the result to an
exit code.
"""

from __future__ import annotations

import logging
import tempfile
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from quickstart_images.constants import NO_TOKEN_MESSAGE, TEMP_DIR_PREFIX
from quickstart_images.context import ExecutionContext
from quickstart_images.core.coordinator import DownloadCoordinator
from quickstart_images.core.exceptions import AuthError, classify_error
from quickstart_images.core.models import ImportResult, ResultStatus
from quickstart_images.core.protocols import (
    ImageLoader,
    ImagePresenceChecker,
    ManifestSource,
    TokenProvider,
)

logger = logging.getLogger(__name__)


class Stage(Enum):
    """Stages of an import run."""

    START = "start"
    AUTHENTICATING = "authenticating"
    FETCHING_MANIFEST = "fetching_manifest"
    SELECTING_MISSING = "selecting_missing"
    DOWNLOADING = "downloading"
    IMPORTING = "importing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


TERMINAL_STAGES = frozenset({Stage.SUCCEEDED, Stage.FAILED})

# FAILED is reachable from every non-terminal stage in addition to these
_TRANSITIONS: dict[Stage, frozenset[Stage]] = {
    Stage.START: frozenset({Stage.AUTHENTICATING}),
    Stage.AUTHENTICATING: frozenset({Stage.FETCHING_MANIFEST}),
    Stage.FETCHING_MANIFEST: frozenset({Stage.SELECTING_MISSING}),
    Stage.SELECTING_MISSING: frozenset({Stage.DOWNLOADING, Stage.SUCCEEDED}),
    Stage.DOWNLOADING: frozenset({Stage.IMPORTING}),
    Stage.IMPORTING: frozenset({Stage.SUCCEEDED}),
}

# Progress fractions reported when entering each stage
_STAGE_PROGRESS = {
    Stage.AUTHENTICATING: 0.0,
    Stage.FETCHING_MANIFEST: 0.05,
    Stage.SELECTING_MISSING: 0.1,
    Stage.DOWNLOADING: 0.15,
    Stage.IMPORTING: 0.6,
    Stage.SUCCEEDED: 1.0,
}


def _plural(count: int) -> str:
    return "s" if count > 1 else ""


class ImportOrchestrator:
    """
    Provisions the local container runtime with the images in the manifest.

    Collaborators are injected so each can be swapped for a test double:
    the token provider, the manifest source (RelayAPI), the presence checker
    and the image loader (both DockerClient in production).
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        source: ManifestSource,
        presence_checker: ImagePresenceChecker,
        loader: ImageLoader,
        ctx: Optional[ExecutionContext] = None,
    ):
        self.token_provider = token_provider
        self.source = source
        self.loader = loader
        self.ctx = ctx if ctx is not None else ExecutionContext()
        self.coordinator = DownloadCoordinator(
            source,
            presence_checker,
            max_workers=self.ctx.settings.max_workers,
        )
        self.stage = Stage.START
        self._fraction = 0.0

    @classmethod
    def from_context(cls, ctx: ExecutionContext) -> ImportOrchestrator:
        """
        Build an orchestrator wired to the production collaborators.

        The container runtime is detected lazily, so a missing runtime is
        reported by run() like any other failure.
        """
        from quickstart_images.auth import provider_from_settings
        from quickstart_images.integrations.relay_api import RelayAPI
        from quickstart_images.utils.docker_utils import DockerClient

        settings = ctx.settings
        docker = DockerClient(runtime=settings.runtime)
        relay = RelayAPI(relay_url=settings.relay_url, timeout=settings.request_timeout)
        return cls(provider_from_settings(settings), relay, docker, docker, ctx=ctx)

    def _transition(self, stage: Stage) -> None:
        if stage is Stage.FAILED:
            allowed = self.stage not in TERMINAL_STAGES
        else:
            allowed = stage in _TRANSITIONS.get(self.stage, frozenset())
        if not allowed:
            raise RuntimeError(f"Illegal stage transition: {self.stage.value} -> {stage.value}")

        logger.debug(f"Stage {self.stage.value} -> {stage.value}")
        self.stage = stage
        self._fraction = _STAGE_PROGRESS.get(stage, self._fraction)

    def _progress(self, message: str, fraction: Optional[float] = None) -> None:
        if fraction is not None:
            self._fraction = fraction
        self.ctx.progress(self._fraction, message)

    def run(self) -> ImportResult:
        """
        Execute one import run.

        Returns:
            ImportResult with status SUCCESS (images imported), SKIPPED
            (nothing missing) or FAILURE (summary holds the error message).
        """
        self.stage = Stage.START
        self._fraction = 0.0
        data: dict[str, Any] = {"manifest_size": 0, "missing": [], "imported": []}

        try:
            return self._run(data)
        except Exception as e:
            return self._fail(e, data)

    def _run(self, data: dict[str, Any]) -> ImportResult:
        self._transition(Stage.AUTHENTICATING)
        self._progress("Authenticating")
        token = self._authenticate()

        self._transition(Stage.FETCHING_MANIFEST)
        self._progress("Fetching manifest")
        manifest = self.source.fetch_manifest(token)
        data["manifest_size"] = len(manifest)

        self._transition(Stage.SELECTING_MISSING)
        self._progress("Checking local images")
        missing = self.coordinator.select_missing(manifest)
        data["missing"] = [entry.tag for entry in missing]

        if not missing:
            self._transition(Stage.SUCCEEDED)
            summary = f"Image{_plural(len(manifest))} already installed, skipped import step."
            self._progress(summary)
            data["stage"] = self.stage.value
            logger.info(summary)
            return ImportResult(status=ResultStatus.SKIPPED, summary=summary, data=data)

        count = len(missing)
        self._transition(Stage.DOWNLOADING)
        self._progress(
            f"Importing {count} docker image{'' if count == 1 else 's'}. This may take a few minutes."
        )

        work_parent = self.ctx.settings.work_dir
        if work_parent is not None:
            Path(work_parent).mkdir(parents=True, exist_ok=True)

        with tempfile.TemporaryDirectory(prefix=TEMP_DIR_PREFIX, dir=work_parent) as work_dir:
            logger.debug(f"Working directory: {work_dir}")
            paths = self.coordinator.download_all(token, missing, work_dir)

            self._transition(Stage.IMPORTING)
            tags = {Path(work_dir) / entry.file_name: entry.tag for entry in missing}
            for index, path in enumerate(paths):
                tag = tags.get(Path(path), Path(path).name)
                self._progress(f"Loading {tag}", 0.6 + 0.4 * index / len(paths))
                self.loader.load_image(path)
                Path(path).unlink()
                data["imported"].append(tag)
                logger.info(f"Imported {tag}")

        self._transition(Stage.SUCCEEDED)
        summary = f"Image{_plural(count)} imported successfully."
        self._progress(summary)
        data["stage"] = self.stage.value
        return ImportResult(status=ResultStatus.SUCCESS, summary=summary, data=data)

    def _authenticate(self) -> str:
        try:
            access = self.token_provider.get_access_token()
        except Exception as e:
            raise AuthError(NO_TOKEN_MESSAGE) from e

        if not access or not access.token:
            raise AuthError(NO_TOKEN_MESSAGE)
        return access.token

    def _fail(self, error: Exception, data: dict[str, Any]) -> ImportResult:
        failed_stage = self.stage
        if failed_stage not in TERMINAL_STAGES:
            self._transition(Stage.FAILED)

        message = str(error) or type(error).__name__
        summary = f"Error: {message}"
        data.update(stage=failed_stage.value, error_type=classify_error(error), error=message)

        logger.error(f"Import failed while {failed_stage.value}: {message}")
        self._progress(summary)
        return ImportResult(status=ResultStatus.FAILURE, summary=summary, data=data)
