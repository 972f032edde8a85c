"""
Exception types raised while provisioning quickstart images.

Transport failures are not wrapped: any ``requests.RequestException`` other
than an authorization or not-found response propagates unchanged, and
``classify_error`` reports it as ``transport``.
"""

from typing import Optional

import requests

from quickstart_images.constants import AUTH_FAILED_MESSAGE, MANIFEST_NOT_FOUND_MESSAGE


class QuickstartImagesError(Exception):
    """Base class for all errors raised by this package."""


class AuthError(QuickstartImagesError):
    """Missing credential, or the relay refused the one we sent."""

    def __init__(self, message: str = AUTH_FAILED_MESSAGE, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ManifestUnavailableError(QuickstartImagesError):
    """The relay has no manifest right now; the user should retry later."""

    def __init__(self, message: str = MANIFEST_NOT_FOUND_MESSAGE):
        super().__init__(message)


class ManifestError(QuickstartImagesError):
    """The manifest body could not be parsed or breaks an invariant."""


class RuntimeNotFoundError(QuickstartImagesError):
    """No usable container runtime was found."""


class LoadError(QuickstartImagesError):
    """The container runtime rejected an image archive."""

    def __init__(
        self,
        path: str,
        returncode: Optional[int] = None,
        stderr: str = "",
        message: Optional[str] = None,
    ):
        self.path = path
        self.returncode = returncode
        self.stderr = stderr
        if message is None:
            message = f"Failed to load image from {path}"
            if returncode is not None:
                message += f" (exit code {returncode})"
            if stderr:
                message += f": {stderr.strip()}"
        super().__init__(message)


def classify_error(exc: BaseException) -> str:
    """
    Classify an exception into a short error type for result reporting.

    Args:
        exc: Exception raised somewhere in the import pipeline

    Returns:
        One of: "auth", "manifest_unavailable", "manifest_invalid",
        "transport", "load", "runtime", "filesystem", "unexpected"
    """
    if isinstance(exc, AuthError):
        return "auth"
    if isinstance(exc, ManifestUnavailableError):
        return "manifest_unavailable"
    if isinstance(exc, ManifestError):
        return "manifest_invalid"
    if isinstance(exc, LoadError):
        return "load"
    if isinstance(exc, RuntimeNotFoundError):
        return "runtime"
    if isinstance(exc, requests.RequestException):
        return "transport"
    if isinstance(exc, OSError):
        return "filesystem"
    return "unexpected"
