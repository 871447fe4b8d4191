import mimetypes
from pathlib import Path
from typing import Any

import structlog

from ghrelease.core.config import ReleaseConfig
from ghrelease.core.errors import decode_error_body
from ghrelease.core.errors import UploadFailed
from ghrelease.models.release import AssetDescriptor
from ghrelease.models.release import ReleaseAsset
from ghrelease.services.github_service import GitHubService

logger = structlog.get_logger('asset_service')

DEFAULT_MIME = 'application/octet-stream'


def mime_or_default(path: str | Path) -> str:
    mime, _ = mimetypes.guess_type(str(path))
    return mime or DEFAULT_MIME


def load_asset(path: str | Path) -> AssetDescriptor:
    """Read a local file into an upload descriptor. I/O errors propagate."""
    path = Path(path)
    return AssetDescriptor(
        name=path.name,
        mime=mime_or_default(path),
        size=path.stat().st_size,
        data=path.read_bytes(),
    )


def find_asset(assets: list[ReleaseAsset], name: str) -> ReleaseAsset | None:
    return next((asset for asset in assets if asset.name == name), None)


class AssetService:
    """Uploads local files to a release, replacing same-named assets on request."""

    def __init__(self, service: GitHubService):
        self.service = service

    def upload(
        self,
        config: ReleaseConfig,
        upload_url: str,
        path: str | Path,
        current_assets: list[ReleaseAsset],
    ) -> dict[str, Any] | None:
        """
        Upload one file to `upload_url`.

        Returns the decoded API response, or None when an asset with the same
        name exists and `overwrite_files` is off.

        Raises:
            UploadFailed: the upload endpoint did not answer 201 Created.
        """
        asset = load_asset(path)

        existing = find_asset(current_assets, asset.name)
        if existing is not None:
            if not config.overwrite_files:
                logger.info(
                    'Asset already exists and overwrite_files is false, skipping',
                    asset=asset.name,
                )
                return None
            logger.info(
                'Deleting previously uploaded asset',
                asset=asset.name, asset_id=existing.id,
            )
            self.service.delete_release_asset(
                config.owner, config.repo, existing.id,
            )

        logger.info('Uploading asset', asset=asset.name, size=asset.size, mime=asset.mime)
        response = self.service.upload_asset(
            upload_url,
            asset.name,
            asset.data,
            headers={
                'Content-Length': str(asset.size),
                'Content-Type': asset.mime,
                'Authorization': f"Bearer {config.github_token}",
            },
        )
        if response.status_code != 201:
            message, errors = decode_error_body(response)
            logger.error(
                'Asset upload failed',
                asset=asset.name, status=response.status_code, message=message,
            )
            raise UploadFailed(asset.name, response.status_code, message, errors)

        return response.json()
