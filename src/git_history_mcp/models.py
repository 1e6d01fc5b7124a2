"""Pydantic models for decoded commits and history tool inputs/outputs."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class TagDecoration(BaseModel):
    """Commit is directly tagged."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["tag"] = "tag"
    name: str = Field(..., min_length=1)


class ReferencesDecoration(BaseModel):
    """Live references pointing at the commit, in the order git printed them."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["refs"] = "refs"
    names: list[str] = Field(..., min_length=1)


class NoDecoration(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["none"] = "none"


Decoration = Annotated[
    Union[TagDecoration, ReferencesDecoration, NoDecoration],
    Field(discriminator="kind"),
]


class Commit(BaseModel):
    """One decoded commit record."""

    model_config = ConfigDict(frozen=True)

    short_hash: str = ""
    full_hash: str = ""
    subject: str = ""
    author_name: str = ""
    author_email: str = ""
    committer_name: str = ""
    committer_email: str = ""
    body: str = ""
    date: datetime
    date_parsed: bool = True
    decoration: Decoration = Field(default_factory=NoDecoration)
    remote_url: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def tag(self) -> str | None:
        if isinstance(self.decoration, TagDecoration):
            return self.decoration.name
        return None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def refs(self) -> list[str]:
        if isinstance(self.decoration, ReferencesDecoration):
            return list(self.decoration.names)
        return []


class HistoryRequest(BaseModel):
    directory: str = Field(default=".", description="Path inside the git working tree")
    branch: str | None = Field(default=None, max_length=255)
    max_count: int | None = Field(default=None, ge=1)
    file_path: str | None = None
    include_merge_commits: bool = False

    @field_validator("directory")
    @classmethod
    def _directory_not_blank(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("directory must not be blank")
        return stripped

    @field_validator("branch")
    @classmethod
    def _branch_is_revision(cls, value: str | None) -> str | None:
        if value is None:
            return None
        stripped = value.strip()
        if not stripped:
            raise ValueError("branch must not be blank")
        if stripped.startswith("-"):
            raise ValueError("branch must not start with '-'")
        if "\x00" in stripped:
            raise ValueError("branch must not contain NUL bytes")
        return stripped

    @field_validator("file_path")
    @classmethod
    def _file_path_not_blank(cls, value: str | None) -> str | None:
        if value is None:
            return None
        if not value.strip():
            raise ValueError("file_path must not be blank")
        if "\x00" in value:
            raise ValueError("file_path must not contain NUL bytes")
        return value


class BaseToolResponse(BaseModel):
    status: Literal["success", "error"]
    message: str = ""
    error_code: str = ""
    suggestion: str = ""
    details: dict[str, Any] = Field(default_factory=dict)


class HistoryResponse(BaseToolResponse):
    remote_url: str | None = None
    count: int = 0
    commits: list[Commit] = Field(default_factory=list)
