import time
from collections.abc import Iterator
from typing import Any
from typing import Protocol

import structlog

from ghrelease.core.config import release_body
from ghrelease.core.config import ReleaseConfig
from ghrelease.core.errors import NotFoundError
from ghrelease.core.errors import RetryExhausted
from ghrelease.models.release import Release

logger = structlog.get_logger('release_service')

DEFAULT_MAX_RETRIES = 3
# GitHub needs time to re-associate the release with a moved tag before
# it accepts an update.
TAG_SETTLE_SECONDS = 2.0


class Releaser(Protocol):
    """The slice of the GitHub API the reconciler talks to."""

    def get_release_by_tag(self, owner: str, repo: str, tag: str) -> Release: ...

    def create_release(
        self,
        owner: str,
        repo: str,
        tag_name: str,
        name: str,
        body: str | None = None,
        draft: bool | None = None,
        prerelease: bool | None = None,
        target_commitish: str | None = None,
        discussion_category_name: str | None = None,
        generate_release_notes: bool | None = None,
    ) -> Release: ...

    def update_release(
        self,
        owner: str,
        repo: str,
        release_id: int,
        tag_name: str,
        target_commitish: str,
        name: str,
        body: str | None = None,
        draft: bool | None = None,
        prerelease: bool | None = None,
        discussion_category_name: str | None = None,
        generate_release_notes: bool | None = None,
    ) -> Release: ...

    def iter_releases(self, owner: str, repo: str) -> Iterator[list[Release]]: ...

    def create_ref(self, owner: str, repo: str, ref: str, sha: str) -> Any: ...

    def delete_ref(self, owner: str, repo: str, ref: str) -> Any: ...


def merge_body(existing: str | None, workflow: str | None, append: bool) -> str:
    existing = existing or ''
    workflow = workflow or ''
    if append and workflow and existing:
        return existing + '\n' + workflow
    return workflow or existing


class ReleaseService:
    """Creates or updates the release for a tag so repeated runs converge."""

    def __init__(self, releaser: Releaser):
        self.releaser = releaser

    def reconcile(self, config: ReleaseConfig, max_retries: int = DEFAULT_MAX_RETRIES) -> Release:
        """
        Find, create or update the release described by `config`.

        A failed creation is presumed to be a race with a concurrent run for
        the same tag, so the whole reconciliation is retried (the retry will
        usually find the competitor's release and update it).

        Raises:
            RetryExhausted: creation failed `max_retries` times.
        """
        if max_retries <= 0:
            logger.error('Too many retries. Aborting...')
            raise RetryExhausted('Too many retries.')

        tag = config.tag

        if config.draft:
            draft = self._find_draft(config, tag)
            if draft is not None:
                return draft

        existing = self._find_by_tag(config, tag)
        if existing is None:
            return self._create(config, tag, max_retries)
        return self._update(config, tag, existing)

    def _find_draft(self, config: ReleaseConfig, tag: str) -> Release | None:
        # Drafts are not addressable by tag, scan the full listing instead.
        for batch in self.releaser.iter_releases(config.owner, config.repo):
            for release in batch:
                if release.tag_name == tag:
                    logger.info('Found draft release', tag=tag, release_id=release.id)
                    return release
        return None

    def _find_by_tag(self, config: ReleaseConfig, tag: str) -> Release | None:
        try:
            release = self.releaser.get_release_by_tag(config.owner, config.repo, tag)
        except NotFoundError:
            logger.info('No release with tag found', tag=tag)
            return None
        except Exception:
            logger.error('An error occurred while fetching the release', tag=tag)
            raise
        logger.info('Found a release with tag', tag=tag, release_id=release.id)
        return release

    def _create(self, config: ReleaseConfig, tag: str, max_retries: int) -> Release:
        logger.info(
            'Creating new GitHub release',
            tag=tag, target_commitish=config.target_commitish,
        )
        body = release_body(config)
        try:
            return self.releaser.create_release(
                config.owner,
                config.repo,
                tag_name=tag,
                name=config.name or tag,
                body=body,
                draft=config.draft,
                prerelease=config.prerelease,
                target_commitish=config.target_commitish,
                discussion_category_name=config.discussion_category_name,
                generate_release_notes=config.generate_release_notes,
            )
        except Exception as e:
            logger.warning(
                'GitHub release creation failed, retrying',
                status=getattr(e, 'status', None),
                errors=getattr(e, 'errors', None),
                error=str(e),
                retries_remaining=max_retries - 1,
            )
            return self.reconcile(config, max_retries - 1)

    def _update(self, config: ReleaseConfig, tag: str, existing: Release) -> Release:
        logger.info('Updating release', tag=tag, release_id=existing.id)

        if config.target_commitish and config.target_commitish != existing.target_commitish:
            logger.info(
                'Updating commit',
                old=existing.target_commitish, new=config.target_commitish,
            )
            target_commitish = config.target_commitish
        else:
            target_commitish = existing.target_commitish

        name = config.name or existing.name or tag
        body = merge_body(existing.body, release_body(config), config.append_body)
        draft = config.draft if config.draft is not None else existing.draft
        prerelease = config.prerelease if config.prerelease is not None else existing.prerelease

        if config.update_tag:
            self._move_tag(config, existing.tag_name)

        return self.releaser.update_release(
            config.owner,
            config.repo,
            release_id=existing.id,
            tag_name=tag,
            target_commitish=target_commitish,
            name=name,
            body=body,
            draft=draft,
            prerelease=prerelease,
            discussion_category_name=config.discussion_category_name,
            generate_release_notes=config.generate_release_notes,
        )

    def _move_tag(self, config: ReleaseConfig, tag_name: str) -> None:
        self.releaser.delete_ref(config.owner, config.repo, f"tags/{tag_name}")
        self.releaser.create_ref(
            config.owner, config.repo, f"refs/tags/{tag_name}", config.github_sha,
        )
        logger.info('Updated tag ref', ref=f"refs/tags/{tag_name}", sha=config.github_sha)
        time.sleep(TAG_SETTLE_SECONDS)
