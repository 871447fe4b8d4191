"""Dependency Injection Container."""
from typing import Optional

from ghrelease.core.config import get_config
from ghrelease.core.config import GitHubConfig
from ghrelease.services.asset_service import AssetService
from ghrelease.services.github_service import GitHubService
from ghrelease.services.publish_service import PublishService
from ghrelease.services.release_service import ReleaseService


class Container:
    """Wires services around a single GitHubService per token."""

    _instance: Optional['Container'] = None

    def __init__(self) -> None:
        self.config: GitHubConfig = get_config()
        self._github_service: GitHubService | None = None

    @classmethod
    def get_instance(cls) -> 'Container':
        if cls._instance is None:
            cls._instance = Container()
        return cls._instance

    def get_github_service(self, token: str | None = None) -> GitHubService:
        """Token is required for first init if not in env."""
        if not self._github_service:
            api_token = token or self.config.token
            if not api_token:
                raise ValueError('GitHub Token is required')
            self._github_service = GitHubService(api_token)
        return self._github_service

    def create_publish_service(self, token: str | None = None) -> PublishService:
        gh = self.get_github_service(token)
        return PublishService(ReleaseService(gh), AssetService(gh))


def get_container() -> Container:
    return Container.get_instance()
