"""Utility modules for container runtime operations and console output."""

from quickstart_images.utils.docker_utils import DockerClient

__all__ = ["DockerClient"]
