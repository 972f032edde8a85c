"""
Bearer token providers.

The relay only needs an opaque bearer token. Providers never raise for a
missing credential; they return an ``AccessToken`` without a token and let
the orchestrator decide that the run cannot continue.
"""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence

from quickstart_images.constants import TOKEN_COMMAND_TIMEOUT

if TYPE_CHECKING:
    from quickstart_images.config import Settings
    from quickstart_images.core.protocols import TokenProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessToken:
    """Credential returned by a token provider. ``token`` may be absent."""

    token: Optional[str] = None

    def __bool__(self) -> bool:
        return bool(self.token)


class StaticTokenProvider:
    """Returns a token that was supplied up front (config file or env var)."""

    def __init__(self, token: Optional[str]):
        self._token = token.strip() if token else None

    def get_access_token(self) -> AccessToken:
        return AccessToken(token=self._token or None)


class CommandTokenProvider:
    """
    Runs an external auth helper that prints a bearer token on stdout.

    Any failure of the helper (missing binary, non-zero exit, timeout) is
    logged and reported as an absent token.
    """

    def __init__(self, command: Sequence[str], timeout: int = TOKEN_COMMAND_TIMEOUT):
        if not command:
            raise ValueError("token command must not be empty")
        self.command = list(command)
        self.timeout = timeout

    def get_access_token(self) -> AccessToken:
        if shutil.which(self.command[0]) is None:
            logger.debug(f"Token command not found in PATH: {self.command[0]}")
            return AccessToken()

        try:
            result = subprocess.run(
                self.command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.debug(f"Token command timed out after {self.timeout}s")
            return AccessToken()
        except FileNotFoundError:
            logger.debug(f"Token command not found: {self.command[0]}")
            return AccessToken()

        if result.returncode != 0:
            logger.debug(f"Token command failed with exit code {result.returncode}: {result.stderr.strip()}")
            return AccessToken()

        token = result.stdout.strip()
        return AccessToken(token=token or None)


def provider_from_settings(settings: Settings) -> TokenProvider:
    """
    Pick a token provider for the given settings.

    A configured token wins over a token command. With neither configured the
    returned provider yields no token, which fails the run at authentication.
    """
    if settings.token:
        logger.debug("Using token from configuration")
        return StaticTokenProvider(settings.token)
    if settings.token_command:
        command = shlex.split(settings.token_command)
        logger.debug(f"Using token command: {command[0]}")
        return CommandTokenProvider(command)
    logger.debug("No token or token command configured")
    return StaticTokenProvider(None)
