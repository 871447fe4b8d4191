import os

import structlog
import typer
from rich.table import Table

from ghrelease.core.config import parse_input_files
from ghrelease.core.config import ReleaseConfig
from ghrelease.core.config import resolve_flag
from ghrelease.core.container import get_container
from ghrelease.core.decorators import handle_errors
from ghrelease.core.github import check_github_token
from ghrelease.core.logging import console
from ghrelease.services.publish_service import emit_outputs
from ghrelease.services.publish_service import PublishResult
from ghrelease.services.release_service import DEFAULT_MAX_RETRIES

logger = structlog.get_logger('publish_command')
app = typer.Typer()


def print_summary(result: PublishResult) -> None:
    release = result.release
    table = Table(title=f"Release {release.tag_name}", title_justify='left')
    table.add_column('Field', style='cyan')
    table.add_column('Value')
    table.add_row('URL', release.html_url)
    table.add_row('ID', str(release.id))
    table.add_row('Draft', str(release.draft))
    table.add_row('Prerelease', str(release.prerelease))
    table.add_row('Uploaded', str(result.stats.uploaded))
    table.add_row('Skipped', str(result.stats.skipped))
    for asset in result.assets:
        table.add_row('Asset', asset.get('browser_download_url') or asset.get('name', ''))
    console.print(table)


@app.callback(invoke_without_command=True)
@handle_errors
def main(
    repository: str = typer.Option(
        ..., '--repository', envvar='GITHUB_REPOSITORY', help='Repository as owner/repo',
    ),
    token: str = typer.Option(
        None, envvar='GITHUB_TOKEN', help='GitHub Token',
    ),
    ref: str = typer.Option(
        '', envvar='GITHUB_REF', help='Triggering ref, e.g. refs/tags/v1.0',
    ),
    sha: str = typer.Option(
        '', envvar='GITHUB_SHA', help='Triggering commit SHA (used by --update-tag)',
    ),
    tag_name: str | None = typer.Option(
        None, envvar='INPUT_TAG_NAME', help='Tag name, defaults to the tag of --ref',
    ),
    name: str | None = typer.Option(
        None, envvar='INPUT_NAME', help='Release name, defaults to the tag',
    ),
    body: str | None = typer.Option(None, envvar='INPUT_BODY', help='Release body'),
    body_path: str | None = typer.Option(
        None, envvar='INPUT_BODY_PATH', help='File to read the release body from',
    ),
    draft: bool | None = typer.Option(
        None, '--draft/--no-draft',
        help='Mark as draft (unset keeps the existing value) [env: INPUT_DRAFT]',
    ),
    prerelease: bool | None = typer.Option(
        None, '--prerelease/--no-prerelease',
        help='Mark as prerelease (unset keeps the existing value) [env: INPUT_PRERELEASE]',
    ),
    target_commitish: str | None = typer.Option(
        None, envvar='INPUT_TARGET_COMMITISH', help='Commitish the tag is created from',
    ),
    discussion_category_name: str | None = typer.Option(
        None, envvar='INPUT_DISCUSSION_CATEGORY_NAME', help='Discussion category to link',
    ),
    generate_release_notes: bool | None = typer.Option(
        None, '--generate-release-notes/--no-generate-release-notes',
        help='Let GitHub generate the notes [env: INPUT_GENERATE_RELEASE_NOTES]',
    ),
    append_body: bool | None = typer.Option(
        None, '--append-body/--no-append-body',
        help='Append to the existing body instead of replacing it [env: INPUT_APPEND_BODY]',
    ),
    overwrite_files: bool | None = typer.Option(
        None, '--overwrite-files/--no-overwrite-files',
        help='Replace assets that already exist with the same name (default: on) [env: INPUT_OVERWRITE_FILES]',
    ),
    update_tag: bool | None = typer.Option(
        None, '--update-tag/--no-update-tag',
        help='Move the existing tag to --sha [env: INPUT_UPDATE_TAG]',
    ),
    fail_on_unmatched_files: bool | None = typer.Option(
        None, '--fail-on-unmatched-files/--no-fail-on-unmatched-files',
        help='Fail when a file pattern matches nothing [env: INPUT_FAIL_ON_UNMATCHED_FILES]',
    ),
    files: list[str] = typer.Option(
        [], '--files', '-f',
        help='Glob patterns of files to upload, repeatable, newline or comma separated [env: INPUT_FILES]',
    ),
    max_retries: int = typer.Option(
        DEFAULT_MAX_RETRIES, help='Attempts at creating the release before giving up',
    ),
    workers: int = typer.Option(1, help='Number of concurrent uploads'),
):
    """
    Create or update a GitHub release and upload its assets.

    Every option falls back to the environment variables set by the
    GitHub Actions runner, so the command can run unchanged as a step.
    """
    token = check_github_token(token, console)
    config = ReleaseConfig(
        github_repository=repository,
        github_token=token,
        github_ref=ref,
        github_sha=sha,
        tag_name=tag_name,
        name=name,
        body=body,
        body_path=body_path,
        draft=resolve_flag(draft, 'INPUT_DRAFT'),
        prerelease=resolve_flag(prerelease, 'INPUT_PRERELEASE'),
        target_commitish=target_commitish,
        discussion_category_name=discussion_category_name,
        generate_release_notes=resolve_flag(
            generate_release_notes, 'INPUT_GENERATE_RELEASE_NOTES',
        ),
        append_body=resolve_flag(append_body, 'INPUT_APPEND_BODY', False),
        overwrite_files=resolve_flag(overwrite_files, 'INPUT_OVERWRITE_FILES', True),
        update_tag=resolve_flag(update_tag, 'INPUT_UPDATE_TAG', False),
        fail_on_unmatched_files=resolve_flag(
            fail_on_unmatched_files, 'INPUT_FAIL_ON_UNMATCHED_FILES', False,
        ),
        # Read by hand: click would split the env value on whitespace.
        files=parse_input_files(files or os.getenv('INPUT_FILES')),
    )
    logger.debug('Loaded configuration', config=repr(config))

    service = get_container().create_publish_service(token)
    result = service.publish(config, max_retries=max_retries, workers=workers)

    emit_outputs(result)
    print_summary(result)
