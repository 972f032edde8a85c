"""
Download coordination: pick the images missing locally and fetch them.

Presence checks and downloads both run on a bounded thread pool. Downloads
are all-or-fail: the first failure cancels downloads that have not started
and is re-raised, and results of downloads still in flight are discarded.
"""

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Sequence, Union

from quickstart_images.constants import DEFAULT_MAX_WORKERS
from quickstart_images.core.models import ImageManifest, ImageManifestEntry
from quickstart_images.core.protocols import ImagePresenceChecker, ManifestSource

logger = logging.getLogger(__name__)


class DownloadCoordinator:
    """Selects missing manifest entries and downloads them concurrently."""

    def __init__(
        self,
        source: ManifestSource,
        presence_checker: ImagePresenceChecker,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        """
        Initialize the coordinator.

        Args:
            source: Client that streams archives (see RelayAPI.download_image)
            presence_checker: Local image store query
            max_workers: Upper bound on concurrent checks and downloads
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.source = source
        self.presence_checker = presence_checker
        self.max_workers = max_workers

    def select_missing(self, manifest: ImageManifest) -> list[ImageManifestEntry]:
        """
        Return the manifest entries whose tag is not present locally.

        Every entry is checked; the result keeps manifest order.
        """
        entries = list(manifest.images)
        if not entries:
            return []

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(entries))) as executor:
            present = list(executor.map(lambda entry: self.presence_checker.has_image_tag(entry.tag), entries))

        missing = [entry for entry, is_present in zip(entries, present) if not is_present]
        logger.info(f"{len(missing)} of {len(entries)} image(s) missing locally")
        return missing

    def download_all(
        self,
        token: str,
        entries: Sequence[ImageManifestEntry],
        work_dir: Union[str, Path],
    ) -> list[Path]:
        """
        Download every entry concurrently into ``work_dir``.

        Args:
            token: Bearer token shared by all downloads
            entries: Entries to download (file names are unique)
            work_dir: Existing directory owned by the current run

        Returns:
            Local archive paths in completion order

        Raises:
            Exception: The first download error, unchanged
        """
        if not entries:
            return []

        logger.info(f"Downloading {len(entries)} image(s) with up to {self.max_workers} workers")

        paths: list[Path] = []
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(entries))) as executor:
            pending = {
                executor.submit(self.source.download_image, token, entry, work_dir): entry
                for entry in entries
            }

            try:
                while pending:
                    done, _ = wait(pending, return_when=FIRST_EXCEPTION)
                    for future in done:
                        entry = pending.pop(future)
                        error = future.exception()
                        if error is not None:
                            logger.error(f"Download of {entry.tag} failed: {error}")
                            raise error
                        paths.append(future.result())
                        logger.debug(f"Downloaded {entry.tag}")
            except BaseException:
                # Includes KeyboardInterrupt raised while waiting
                for other in pending:
                    other.cancel()
                raise

        return paths
