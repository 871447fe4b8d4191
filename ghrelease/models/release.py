from dataclasses import dataclass

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class ReleaseAsset(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(extra='ignore')


class Release(BaseModel):
    """Remote release state as returned by the Releases API."""
    id: int
    upload_url: str = ''
    html_url: str = ''
    tag_name: str
    name: str | None = None
    body: str | None = None
    target_commitish: str = ''
    draft: bool = False
    prerelease: bool = False
    assets: list[ReleaseAsset] = Field(default_factory=list)

    model_config = ConfigDict(extra='ignore')

    @property
    def asset_upload_url(self) -> str:
        """`upload_url` without its URI template suffix (`{?name,label}`)."""
        return self.upload_url.split('{', 1)[0]


@dataclass(frozen=True)
class AssetDescriptor:
    """Local file prepared for upload."""
    name: str
    mime: str
    size: int
    data: bytes
