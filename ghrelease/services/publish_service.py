import json
import os
from concurrent.futures import as_completed
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Any

import structlog
from rich.console import Console
from rich.progress import BarColumn
from rich.progress import MofNCompleteColumn
from rich.progress import Progress
from rich.progress import SpinnerColumn
from rich.progress import TextColumn
from rich.progress import TimeElapsedColumn

from ghrelease.core.config import ReleaseConfig
from ghrelease.core.errors import UnmatchedFilesError
from ghrelease.core.files import resolve_paths
from ghrelease.core.files import unmatched_patterns
from ghrelease.core.stats import BaseStats
from ghrelease.models.release import Release
from ghrelease.services.asset_service import AssetService
from ghrelease.services.release_service import DEFAULT_MAX_RETRIES
from ghrelease.services.release_service import ReleaseService

logger = structlog.get_logger('publish_service')


@dataclass
class UploadStats(BaseStats):
    uploaded: int = 0

    def inc_uploaded(self):
        with self._lock:
            self.uploaded += 1


@dataclass
class PublishResult:
    release: Release
    assets: list[dict[str, Any]] = field(default_factory=list)
    stats: UploadStats = field(default_factory=UploadStats)

    def outputs(self) -> dict[str, str]:
        return {
            'url': self.release.html_url,
            'id': str(self.release.id),
            'upload_url': self.release.upload_url,
            'assets': json.dumps(self.assets),
        }


def write_outputs(outputs: dict[str, str], path: str | Path) -> None:
    """Append `key=value` lines to a runner output file (`$GITHUB_OUTPUT`)."""
    with open(path, 'a', encoding='utf-8') as f:
        for key, value in outputs.items():
            f.write(f"{key}={value}\n")


class PublishService:
    """Reconciles the release, then uploads every matched file to it."""

    def __init__(self, release_service: ReleaseService, asset_service: AssetService):
        self.release_service = release_service
        self.asset_service = asset_service

    def publish(
        self,
        config: ReleaseConfig,
        max_retries: int = DEFAULT_MAX_RETRIES,
        workers: int = 1,
    ) -> PublishResult:
        release = self.release_service.reconcile(config, max_retries)
        logger.info(
            'Release ready',
            url=release.html_url, release_id=release.id, draft=release.draft,
        )
        result = PublishResult(release=release)

        if not config.files:
            return result

        missing = unmatched_patterns(config.files)
        for pattern in missing:
            logger.warning('Pattern does not match any files', pattern=pattern)
        if missing and config.fail_on_unmatched_files:
            raise UnmatchedFilesError(missing)

        paths = resolve_paths(config.files)
        if not paths:
            logger.warning('No files to upload', patterns=list(config.files))
            return result

        # Every upload sees the asset list as it was when the release was fetched.
        current_assets = list(release.assets)
        upload_url = release.asset_upload_url
        result.stats.total = len(paths)

        def upload_one(path: Path) -> dict[str, Any] | None:
            try:
                uploaded = self.asset_service.upload(
                    config, upload_url, path, current_assets,
                )
            except Exception:
                result.stats.inc_failed()
                raise
            if uploaded is None:
                result.stats.inc_skipped()
            else:
                result.stats.inc_uploaded()
            return uploaded

        if workers > 1:
            with Progress(
                SpinnerColumn(),
                TextColumn('[progress.description]{task.description}'),
                BarColumn(),
                MofNCompleteColumn(),
                TextColumn('•'),
                TimeElapsedColumn(),
                console=Console(stderr=True),
            ) as progress:
                task = progress.add_task('Uploading assets...', total=len(paths))
                with ThreadPoolExecutor(max_workers=workers) as executor:
                    futures = [executor.submit(upload_one, path) for path in paths]
                    for future in as_completed(futures):
                        progress.advance(task)
                    # Submission order, so outputs match the sequential path.
                    responses = [future.result() for future in futures]
        else:
            responses = [upload_one(path) for path in paths]

        for response in responses:
            if response is not None:
                response.pop('uploader', None)
                result.assets.append(response)

        logger.info(
            'Upload complete',
            uploaded=result.stats.uploaded,
            skipped=result.stats.skipped,
            elapsed=f"{result.stats.elapsed_time:.2f}s",
        )
        return result


def emit_outputs(result: PublishResult) -> None:
    path = os.getenv('GITHUB_OUTPUT')
    if path:
        write_outputs(result.outputs(), path)
        logger.debug('Wrote step outputs', path=path)
