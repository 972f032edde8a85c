"""
Docker/Podman utility functions for local image operations.

Provides the presence check and the archive load used by the importer,
supporting both Docker and Podman automatically.
"""

import logging
import subprocess
import threading
from pathlib import Path
from typing import Optional, Union

from quickstart_images.constants import (
    IMAGE_INSPECT_TIMEOUT,
    IMAGE_LOAD_TIMEOUT,
    SUPPORTED_RUNTIMES,
    VERSION_CHECK_TIMEOUT,
)
from quickstart_images.core.exceptions import LoadError, RuntimeNotFoundError

logger = logging.getLogger(__name__)


class DockerClient:
    """
    Unified client for Docker/Podman operations.

    Detects the available container runtime (docker or podman) on first use
    unless one is given explicitly.
    """

    def __init__(self, runtime: Optional[str] = None):
        """
        Initialize Docker client.

        Args:
            runtime: Runtime command to use ("docker" or "podman"). When None,
                docker is preferred over podman.
        """
        self._runtime = runtime
        self._lock = threading.Lock()

    @property
    def runtime(self) -> str:
        """
        Runtime command in use, detected on first access.

        Raises:
            RuntimeNotFoundError: If neither docker nor podman is available
        """
        with self._lock:
            if self._runtime is None:
                self._runtime = self._detect_runtime()
                if not self._runtime:
                    raise RuntimeNotFoundError("Neither docker nor podman found in PATH")
                logger.debug(f"Using container runtime: {self._runtime}")
            return self._runtime

    def _detect_runtime(self) -> Optional[str]:
        """Detect available container runtime."""
        for cmd in SUPPORTED_RUNTIMES:
            try:
                result = subprocess.run(
                    [cmd, "--version"],
                    capture_output=True,
                    timeout=VERSION_CHECK_TIMEOUT,
                )
                if result.returncode == 0:
                    return cmd
            except (subprocess.TimeoutExpired, FileNotFoundError):
                continue
        return None

    def has_image_tag(self, tag: str) -> bool:
        """
        Check whether an image tag exists in the local image store.

        Args:
            tag: Image reference (e.g., "hyperledger/besu:24.1")

        Returns:
            True if the runtime knows the tag, False otherwise

        Raises:
            RuntimeNotFoundError: If no container runtime is available
        """
        runtime = self.runtime
        try:
            result = subprocess.run(
                [runtime, "image", "inspect", tag],
                capture_output=True,
                text=True,
                timeout=IMAGE_INSPECT_TIMEOUT,
            )
        except (subprocess.TimeoutExpired, FileNotFoundError) as e:
            logger.debug(f"Failed to inspect {tag}: {e}")
            return False

        present = result.returncode == 0
        logger.debug(f"Image {tag} {'present' if present else 'missing'} locally")
        return present

    def load_image(self, path: Union[str, Path]) -> None:
        """
        Load an image archive into the local image store.

        Args:
            path: Path to an archive produced by "docker save" or equivalent

        Raises:
            LoadError: If the runtime rejects the archive or times out
            RuntimeNotFoundError: If no container runtime is available
        """
        path = str(path)
        runtime = self.runtime
        logger.debug(f"Loading image archive {path}")

        try:
            result = subprocess.run(
                [runtime, "load", "-i", path],
                capture_output=True,
                text=True,
                timeout=IMAGE_LOAD_TIMEOUT,
            )
        except subprocess.TimeoutExpired as e:
            raise LoadError(path, message=f"Timed out loading image from {path} after {IMAGE_LOAD_TIMEOUT}s") from e
        except FileNotFoundError as e:
            raise LoadError(path, message=f"Container runtime '{runtime}' not found") from e

        if result.returncode != 0:
            raise LoadError(path, returncode=result.returncode, stderr=result.stderr)

        logger.debug(f"Loaded image archive {path}: {result.stdout.strip()}")
