"""Data models for the image manifest and the outcome of an import run."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath, PureWindowsPath
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ImageManifestEntry(BaseModel):
    """One image required by the quickstart, as listed by the relay."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    tag: str = Field(min_length=1)
    url: str = Field(min_length=1)
    file_name: str = Field(alias="fileName", min_length=1)

    @field_validator("file_name")
    @classmethod
    def _bare_file_name(cls, value: str) -> str:
        # Archives must land directly inside the working directory
        if value in (".", "..") or PurePosixPath(value).name != value or PureWindowsPath(value).name != value:
            raise ValueError(f"fileName must be a plain file name, got {value!r}")
        return value


class ImageManifest(BaseModel):
    """Ordered list of images required for this run."""

    model_config = ConfigDict(frozen=True)

    images: tuple[ImageManifestEntry, ...] = ()

    @model_validator(mode="after")
    def _unique_file_names(self) -> ImageManifest:
        seen: set[str] = set()
        for entry in self.images:
            if entry.file_name in seen:
                raise ValueError(f"Duplicate fileName in manifest: {entry.file_name}")
            seen.add(entry.file_name)
        return self

    def __len__(self) -> int:
        return len(self.images)


class ResultStatus(Enum):
    """Outcome of an import run."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILURE = "failure"


@dataclass(frozen=True)
class ImportResult:
    """Returned by every orchestrator run.

    Attributes:
        status: Overall outcome.
        summary: Human-readable one-line summary.
        data: Structured details (stage reached, counts, error type).
    """

    status: ResultStatus
    summary: str
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """True unless the run failed; skipped runs count as ok."""
        return self.status is not ResultStatus.FAILURE
