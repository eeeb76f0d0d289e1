"""Pydantic models describing hosted release records."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ReleaseAsset(BaseModel):
    id: int
    name: str
    size: int = 0
    content_type: Optional[str] = None
    browser_download_url: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class Release(BaseModel):
    id: int
    tag_name: str
    name: Optional[str] = None
    body: Optional[str] = None
    prerelease: bool = False
    draft: bool = False
    target_commitish: Optional[str] = Field(default=None, description="Commit or branch the tag points at.")
    html_url: Optional[str] = None
    upload_url: Optional[str] = None
    assets: List[ReleaseAsset] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    def asset_named(self, name: str) -> Optional[ReleaseAsset]:
        for asset in self.assets:
            if asset.name == name:
                return asset
        return None
