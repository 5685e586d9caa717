"""
inkshare/schemas/remarkable.py

Purpose: reMarkable cloud payload schemas

- Item listing entries (the API spells it "VissibleName")
- Upload slot responses
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DocumentItem(BaseModel):
    """One entry of the account listing."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(..., alias="ID")
    visible_name: str = Field(default="", alias="VissibleName")
    kind: str = Field(default="DocumentType", alias="Type")
    download_url: Optional[str] = Field(default=None, alias="BlobURLGet")
    version: int = Field(default=0, alias="Version")
    parent: str = Field(default="", alias="Parent")
    success: bool = Field(default=True, alias="Success")
    message: str = Field(default="", alias="Message")


class UploadSlot(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(..., alias="ID")
    upload_url: Optional[str] = Field(default=None, alias="BlobURLPut")
    success: bool = Field(default=False, alias="Success")
    message: str = Field(default="", alias="Message")
