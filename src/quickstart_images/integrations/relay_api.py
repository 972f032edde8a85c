"""
Relay API client for the quickstart image manifest and image archives.

Both endpoints are authenticated with a bearer token. The client performs a
single request per call; retries are left to the user. A requests Session is
shared across concurrent downloads for connection pooling.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import requests
from pydantic import ValidationError

from quickstart_images.constants import DEFAULT_RELAY_URL, DOWNLOAD_CHUNK_SIZE, MANIFEST_PATH
from quickstart_images.core.exceptions import AuthError, ManifestError, ManifestUnavailableError
from quickstart_images.core.models import ImageManifest, ImageManifestEntry

logger = logging.getLogger(__name__)

# Statuses the relay uses to refuse a credential
AUTH_DENIED_STATUSES = frozenset({401, 403})


def _auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class RelayAPI:
    """
    Client for the quickstart relay service.

    Serves the image manifest and streams the image archives it references.
    """

    def __init__(
        self,
        relay_url: str = DEFAULT_RELAY_URL,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        chunk_size: int = DOWNLOAD_CHUNK_SIZE,
    ):
        """
        Initialize the relay client.

        Args:
            relay_url: Base URL of the relay service
            session: Optional requests Session (a new one is created if omitted)
            timeout: Per-request timeout in seconds; None leaves it to the transport
            chunk_size: Bytes per chunk when streaming archives to disk
        """
        self.relay_url = relay_url.rstrip("/")
        self.timeout = timeout
        self.chunk_size = chunk_size
        self._session = session if session is not None else requests.Session()

    @property
    def manifest_url(self) -> str:
        return f"{self.relay_url}{MANIFEST_PATH}"

    def fetch_manifest(self, token: str) -> ImageManifest:
        """
        Fetch the list of images required by the quickstart.

        Args:
            token: Bearer token

        Returns:
            Parsed, validated manifest

        Raises:
            AuthError: The relay refused the token (401/403)
            ManifestUnavailableError: The relay has no manifest (404)
            ManifestError: The response body is not a valid manifest
            requests.RequestException: Any other transport or HTTP failure
        """
        logger.debug(f"Fetching image manifest from {self.manifest_url}")

        try:
            response = self._session.get(
                self.manifest_url,
                headers=_auth_headers(token),
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            if status_code in AUTH_DENIED_STATUSES:
                raise AuthError(status_code=status_code) from e
            if status_code == 404:
                raise ManifestUnavailableError() from e
            raise

        try:
            payload = response.json()
        except ValueError as e:
            raise ManifestError(f"The image manifest is not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise ManifestError("The image manifest must be a JSON object with an 'images' list")

        try:
            manifest = ImageManifest.model_validate(payload)
        except ValidationError as e:
            raise ManifestError(f"The image manifest is malformed: {e}") from e

        logger.info(f"Manifest lists {len(manifest)} image(s)")
        return manifest

    def download_image(
        self,
        token: str,
        entry: ImageManifestEntry,
        work_dir: Union[str, Path],
    ) -> Path:
        """
        Stream one image archive to ``work_dir / entry.file_name``.

        The body is written chunk by chunk and never held in memory as a
        whole. A partially written file is left in place on failure.

        Args:
            token: Bearer token
            entry: Manifest entry to download
            work_dir: Directory that receives the archive

        Returns:
            Path of the downloaded archive

        Raises:
            AuthError: The archive host refused the token (401/403)
            requests.RequestException: Any other transport or HTTP failure
            OSError: The archive could not be written
        """
        save_path = Path(work_dir) / entry.file_name
        logger.debug(f"Downloading {entry.tag} from {entry.url} to {save_path}")

        try:
            with self._session.get(
                entry.url,
                headers=_auth_headers(token),
                stream=True,
                timeout=self.timeout,
            ) as response:
                response.raise_for_status()

                written = 0
                with open(save_path, "wb") as output:
                    for chunk in response.iter_content(chunk_size=self.chunk_size):
                        if chunk:
                            output.write(chunk)
                            written += len(chunk)
        except requests.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            if status_code in AUTH_DENIED_STATUSES:
                raise AuthError(status_code=status_code) from e
            raise

        logger.debug(f"Downloaded {entry.tag}: {written} bytes")
        return save_path
