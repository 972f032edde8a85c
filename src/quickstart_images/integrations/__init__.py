"""Clients for remote services."""

from quickstart_images.integrations.relay_api import RelayAPI

__all__ = ["RelayAPI"]
