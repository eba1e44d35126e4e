"""Typed metadata returned by storage operations.

Models are validated straight from provider JSON through field aliases.
"""

from __future__ import annotations

from datetime import datetime
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cloudstore.const import FOLDER_MIME_TYPE


class CommonMetadata(BaseModel):
    """Fields shared by files and folders."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = ""
    name: str = ""
    parent_id: str = Field(default="", alias="parents")
    created_time: datetime | None = Field(default=None, alias="createdTime")
    modified_time: datetime | None = Field(default=None, alias="modifiedTime")

    @field_validator("parent_id", mode="before")
    @classmethod
    def _first_parent(cls, value: object) -> object:
        if isinstance(value, list):
            return value[0] if value else ""
        return value


class FileMetadata(CommonMetadata):
    """Metadata of a stored file."""

    size: int = 0
    mime_type: str = Field(default="", alias="mimeType")
    md5_checksum: str | None = Field(default=None, alias="md5Checksum")


class FolderMetadata(CommonMetadata):
    """Metadata of a folder."""

    mime_type: str = Field(default=FOLDER_MIME_TYPE, alias="mimeType")


FolderItem = Union[FolderMetadata, FileMetadata]


def parse_folder_item(payload: dict) -> FolderItem:
    """Validate a listing entry as a folder or a file based on its MIME type."""
    if payload.get("mimeType") == FOLDER_MIME_TYPE:
        return FolderMetadata.model_validate(payload)
    return FileMetadata.model_validate(payload)


class ListFolderResponse(BaseModel):
    """One page of a folder listing."""

    items: list[FolderItem] = Field(default_factory=list)
    next_page_token: str = ""


class StorageQuota(BaseModel):
    """Storage usage and limit of the account, in bytes."""

    model_config = ConfigDict(populate_by_name=True)

    total: int = Field(default=0, alias="limit")
    usage: int = Field(default=0, alias="usageInDrive")


class UserInfo(BaseModel):
    """Identity of the authenticated user."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(default="", alias="displayName")
    email: str = Field(default="", alias="emailAddress")
