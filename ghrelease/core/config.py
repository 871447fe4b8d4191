"""Configuration management for ghrelease."""
import os
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path

TAG_REF_PREFIX = 'refs/tags/'


def is_tag(ref: str) -> bool:
    return ref.startswith(TAG_REF_PREFIX)


def env_flag(name: str) -> bool | None:
    """Read a boolean runner input: unset or empty is None, only 'true' is True."""
    value = os.getenv(name)
    if not value:
        return None
    return value.strip().lower() == 'true'


def resolve_flag(value: bool | None, envvar: str, default: bool | None = None) -> bool | None:
    """An explicit CLI value wins over the environment, which wins over `default`."""
    if value is not None:
        return value
    flag = env_flag(envvar)
    return default if flag is None else flag


def parse_input_files(values: list[str] | tuple[str, ...] | str | None) -> tuple[str, ...]:
    """
    Split file inputs on newlines and commas.

    Accepts a single string (as the runner passes `INPUT_FILES`) or a list
    of strings (repeated CLI options). Blank entries are dropped.
    """
    if not values:
        return ()
    if isinstance(values, str):
        values = [values]

    patterns: list[str] = []
    for value in values:
        for line in value.splitlines():
            for part in line.split(','):
                part = part.strip()
                if part:
                    patterns.append(part)
    return tuple(patterns)


@dataclass(frozen=True)
class ReleaseConfig:
    """Desired release state for a single publishing run."""
    github_repository: str
    github_token: str = ''
    github_ref: str = ''
    github_sha: str = ''
    tag_name: str | None = None
    name: str | None = None
    body: str | None = None
    body_path: str | None = None
    # Tri-state: None keeps whatever the existing release has.
    draft: bool | None = None
    prerelease: bool | None = None
    target_commitish: str | None = None
    discussion_category_name: str | None = None
    generate_release_notes: bool | None = None
    append_body: bool = False
    overwrite_files: bool = True
    update_tag: bool = False
    fail_on_unmatched_files: bool = False
    files: tuple[str, ...] = ()

    def __post_init__(self):
        if self.github_repository.count('/') != 1:
            raise ValueError(
                f"Invalid repository: {self.github_repository!r}. Use 'owner/repo'.",
            )

    @property
    def owner(self) -> str:
        return self.github_repository.split('/')[0]

    @property
    def repo(self) -> str:
        return self.github_repository.split('/')[1]

    @property
    def tag(self) -> str:
        """Explicit tag name, else the tag of a tag ref, else empty."""
        if self.tag_name:
            return self.tag_name
        if is_tag(self.github_ref):
            return self.github_ref[len(TAG_REF_PREFIX):]
        return ''

    def __repr__(self) -> str:
        return (
            f"ReleaseConfig(github_repository={self.github_repository!r}, "
            f"github_token='*****', github_ref={self.github_ref!r}, "
            f"tag_name={self.tag_name!r}, name={self.name!r}, "
            f"draft={self.draft!r}, prerelease={self.prerelease!r}, "
            f"update_tag={self.update_tag!r}, files={self.files!r})"
        )


def release_body(config: ReleaseConfig) -> str | None:
    """Body text from `body_path` when it has content, else `body`."""
    if config.body_path:
        text = Path(config.body_path).read_text(encoding='utf-8')
        if text:
            return text
    return config.body or None


@dataclass
class GitHubConfig:
    token: str | None = field(
        default_factory=lambda: os.getenv('GITHUB_TOKEN'),
    )
    api_base_url: str = field(
        default_factory=lambda: os.getenv(
            'GITHUB_API_URL', 'https://api.github.com',
        ),
    )
    retries: int = 3
    pool_size: int = 10
    timeout: float = 30.0
    upload_timeout: float = 600.0

    def __repr__(self) -> str:
        return (
            f"GitHubConfig(token='*****', api_base_url={self.api_base_url!r}, "
            f"retries={self.retries!r}, pool_size={self.pool_size!r}, "
            f"timeout={self.timeout!r}, upload_timeout={self.upload_timeout!r})"
        )


_config: GitHubConfig | None = None


def get_config() -> GitHubConfig:
    global _config
    if _config is None:
        _config = GitHubConfig()
    return _config


def set_config(config: GitHubConfig) -> None:
    global _config
    _config = config
