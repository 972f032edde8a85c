"""
Centralized configuration constants for quickstart-images.

This module provides a single source of truth for values shared by the
relay client, the download coordinator and the container runtime wrapper.
"""

__version__ = "0.3.0"

# ============================================================================
# Relay Service
# ============================================================================

DEFAULT_RELAY_URL = "https://relay.quorum.consensys.net"
"""Production relay used when no override is configured."""

MANIFEST_PATH = "/quorum-dev-quickstart/manifest"
"""Path of the image manifest, relative to the relay URL."""

ENV_PREFIX = "QUORUM_DEV_QUICKSTART_"
"""Prefix for all environment variable overrides."""

# ============================================================================
# Downloads
# ============================================================================

DEFAULT_MAX_WORKERS = 4
"""Default number of concurrent image downloads."""

DOWNLOAD_CHUNK_SIZE = 1024 * 1024
"""Bytes written per chunk while streaming an image archive (1 MiB)."""

TEMP_DIR_PREFIX = "quorum-dev-quickstart"
"""Prefix of the per-run temporary working directory."""

# ============================================================================
# Container Runtime
# ============================================================================

SUPPORTED_RUNTIMES = ("docker", "podman")
"""Runtimes probed, in order, when none is configured."""

VERSION_CHECK_TIMEOUT = 5
"""Timeout for runtime version checks (5 seconds)."""

IMAGE_INSPECT_TIMEOUT = 30
"""Timeout for checking whether an image tag exists locally."""

IMAGE_LOAD_TIMEOUT = 900
"""Timeout for loading a single image archive (15 minutes)."""

TOKEN_COMMAND_TIMEOUT = 30
"""Timeout for an external token command."""

# ============================================================================
# User-facing messages
# ============================================================================

AUTH_FAILED_MESSAGE = "There was a problem authenticating your account. Please try again."

NO_TOKEN_MESSAGE = "No access token returned. Please try again in a few minutes."

MANIFEST_NOT_FOUND_MESSAGE = (
    "The image manifest cannot be found. "
    "This sometimes happens when the image is being updated. "
    "Please wait a minute and try again."
)
