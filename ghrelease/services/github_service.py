import time
from collections.abc import Iterator
from typing import Any

import requests
import structlog
from ratelimit import limits
from ratelimit import sleep_and_retry

from ghrelease.core.client import get_http_client
from ghrelease.core.config import get_config
from ghrelease.core.errors import GitHubAPIError
from ghrelease.core.errors import NotFoundError
from ghrelease.models.release import Release

logger = structlog.get_logger('github_service')

# Core: 5000/hour per token -> 4500 for safety
CORE_CALLS = 4500
CORE_PERIOD = 3600
PER_PAGE = 100


def raise_for_api_status(response: requests.Response) -> None:
    """Translate a non-2xx API response into GitHubAPIError / NotFoundError."""
    if response.ok:
        return
    if response.status_code == 404:
        raise NotFoundError.from_response(response)
    raise GitHubAPIError.from_response(response)


class GitHubService:
    """Releases and git refs endpoints of the GitHub REST API."""

    def __init__(self, token: str, api_base_url: str | None = None):
        config = get_config()
        self.api_base_url = (api_base_url or config.api_base_url).rstrip('/')
        self.timeout = config.timeout
        self.upload_timeout = config.upload_timeout
        self.session = get_http_client(
            retries=config.retries, pool_size=config.pool_size,
        )
        self.session.headers.update({
            'Authorization': f"Bearer {token}",
            'Accept': 'application/vnd.github+json',
            'X-GitHub-Api-Version': '2022-11-28',
            'User-Agent': 'ghrelease',
        })

    def _handle_api_rate_limit(self, response: requests.Response):
        """Sleep through a 403/429 rate-limit response."""
        reset_time = response.headers.get('X-RateLimit-Reset')
        retry_after = response.headers.get('Retry-After')

        wait_seconds = 60.0
        try:
            if retry_after:
                wait_seconds = float(retry_after) + 1.0
            elif reset_time:
                wait_seconds = float(reset_time) - time.time() + 1.0
        except ValueError:
            # Retry-After may also be an HTTP-date.
            logger.debug(
                'Unparsable rate limit header, using default wait',
                retry_after=retry_after, reset_time=reset_time,
            )
        wait_seconds = max(wait_seconds, 1.0)

        if wait_seconds > 3600:
            logger.error(
                'Rate limit reset too far in future',
                wait_seconds=wait_seconds,
            )
            raise GitHubAPIError(
                response.status_code,
                'Rate limit exceeded and reset time is too long (circuit breaker).',
            )

        logger.warning(
            'Request quota exhausted, waiting',
            method=response.request.method,
            url=response.url,
            status=response.status_code,
            wait_seconds=f"{wait_seconds:.2f}s",
        )
        time.sleep(wait_seconds)

    @staticmethod
    def _is_rate_limited(response: requests.Response) -> bool:
        if response.status_code == 429:
            return True
        if response.status_code == 403:
            return (
                response.headers.get('X-RateLimit-Remaining') == '0'
                or 'rate limit' in response.text.lower()
            )
        return False

    @sleep_and_retry
    @limits(calls=CORE_CALLS, period=CORE_PERIOD)
    def _make_request(self, method: str, url: str, **kwargs) -> requests.Response:
        kwargs.setdefault('timeout', self.timeout)
        while True:
            response = self.session.request(method, url, **kwargs)
            if self._is_rate_limited(response):
                self._handle_api_rate_limit(response)
                continue
            return response

    def _api(self, method: str, path: str, **kwargs) -> requests.Response:
        response = self._make_request(method, f"{self.api_base_url}{path}", **kwargs)
        raise_for_api_status(response)
        return response

    # -- Releases --

    def get_release_by_tag(self, owner: str, repo: str, tag: str) -> Release:
        response = self._api('GET', f"/repos/{owner}/{repo}/releases/tags/{tag}")
        return Release.model_validate(response.json())

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
    ) -> Release:
        payload = _drop_none({
            'tag_name': tag_name,
            'name': name,
            'body': body,
            'draft': draft,
            'prerelease': prerelease,
            'target_commitish': target_commitish,
            'discussion_category_name': discussion_category_name,
            'generate_release_notes': generate_release_notes,
        })
        response = self._api('POST', f"/repos/{owner}/{repo}/releases", json=payload)
        return Release.model_validate(response.json())

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
    ) -> Release:
        payload = _drop_none({
            'tag_name': tag_name,
            'target_commitish': target_commitish,
            'name': name,
            'body': body,
            'draft': draft,
            'prerelease': prerelease,
            'discussion_category_name': discussion_category_name,
            'generate_release_notes': generate_release_notes,
        })
        response = self._api(
            'PATCH', f"/repos/{owner}/{repo}/releases/{release_id}", json=payload,
        )
        return Release.model_validate(response.json())

    def iter_releases(self, owner: str, repo: str) -> Iterator[list[Release]]:
        """Yield one batch of releases per page (drafts included)."""
        page = 1
        while True:
            response = self._api(
                'GET',
                f"/repos/{owner}/{repo}/releases",
                params={'per_page': str(PER_PAGE), 'page': str(page)},
            )
            batch = [Release.model_validate(r) for r in response.json()]
            if batch:
                yield batch
            if len(batch) < PER_PAGE:
                return
            page += 1

    # -- Git refs --

    def create_ref(self, owner: str, repo: str, ref: str, sha: str) -> dict[str, Any]:
        response = self._api(
            'POST', f"/repos/{owner}/{repo}/git/refs", json={'ref': ref, 'sha': sha},
        )
        return response.json()

    def delete_ref(self, owner: str, repo: str, ref: str) -> None:
        self._api('DELETE', f"/repos/{owner}/{repo}/git/refs/{ref}")

    # -- Assets --

    def delete_release_asset(self, owner: str, repo: str, asset_id: int) -> None:
        self._api('DELETE', f"/repos/{owner}/{repo}/releases/assets/{asset_id}")

    def upload_asset(
        self, url: str, name: str, data: bytes, headers: dict[str, str],
    ) -> requests.Response:
        """POST raw bytes to an upload URL. Status handling is left to the caller."""
        return self._make_request(
            'POST',
            url,
            params={'name': name},
            data=data,
            headers=headers,
            timeout=self.upload_timeout,
        )


def _drop_none(payload: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in payload.items() if v is not None}
