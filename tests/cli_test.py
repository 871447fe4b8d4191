from unittest.mock import MagicMock
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from ghrelease.__main__ import app
from ghrelease.core.errors import RetryExhausted
from ghrelease.models.release import Release
from ghrelease.services.publish_service import PublishResult

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in (
        'GITHUB_TOKEN', 'GITHUB_REPOSITORY', 'GITHUB_REF', 'GITHUB_SHA',
        'GITHUB_OUTPUT', 'INPUT_DRAFT', 'INPUT_PRERELEASE', 'INPUT_FILES',
        'INPUT_OVERWRITE_FILES', 'INPUT_APPEND_BODY', 'INPUT_UPDATE_TAG',
    ):
        monkeypatch.delenv(var, raising=False)
    with patch('ghrelease.__main__.setup_logging'), patch('dotenv.load_dotenv'):
        yield


@pytest.fixture
def mock_publisher():
    publisher = MagicMock()
    publisher.publish.return_value = PublishResult(
        release=Release(id=1, tag_name='v1.0', html_url='https://github.com/o/r/releases/tag/v1.0'),
    )
    with patch('ghrelease.commands.publish.get_container') as mock_container:
        mock_container.return_value.create_publish_service.return_value = publisher
        yield publisher


def test_publish_builds_config_from_env(mock_publisher, monkeypatch):
    monkeypatch.setenv('GITHUB_TOKEN', 'fake_token')
    monkeypatch.setenv('GITHUB_REPOSITORY', 'o/r')
    monkeypatch.setenv('GITHUB_REF', 'refs/tags/v1.0')
    monkeypatch.setenv('INPUT_DRAFT', 'false')

    result = runner.invoke(app, ['publish', '--files', 'dist/*.zip,dist/*.tar.gz'])

    assert result.exit_code == 0, result.output
    config = mock_publisher.publish.call_args.args[0]
    assert config.github_repository == 'o/r'
    assert config.tag == 'v1.0'
    assert config.draft is False
    assert config.prerelease is None
    assert config.files == ('dist/*.zip', 'dist/*.tar.gz')
    assert mock_publisher.publish.call_args.kwargs == {'max_retries': 3, 'workers': 1}


def test_publish_tri_state_flags_from_cli(mock_publisher):
    result = runner.invoke(app, [
        'publish', '--repository', 'o/r', '--token', 't',
        '--prerelease', '--no-overwrite-files', '--append-body',
    ])

    assert result.exit_code == 0, result.output
    config = mock_publisher.publish.call_args.args[0]
    assert config.draft is None
    assert config.prerelease is True
    assert config.overwrite_files is False
    assert config.append_body is True


def test_publish_requires_token(mock_publisher):
    result = runner.invoke(app, ['publish', '--repository', 'o/r'])

    assert result.exit_code == 1
    mock_publisher.publish.assert_not_called()


def test_publish_failure_exits_non_zero(mock_publisher):
    mock_publisher.publish.side_effect = RetryExhausted('Too many retries.')

    result = runner.invoke(app, ['publish', '--repository', 'o/r', '--token', 't'])

    assert result.exit_code == 1
    assert 'Too many retries' in result.output


def test_invalid_repository(mock_publisher):
    result = runner.invoke(app, ['publish', '--repository', 'nope', '--token', 't'])

    assert result.exit_code == 1
    assert 'Validation Error' in result.output


def test_cli_flag_wins_over_env(mock_publisher, monkeypatch):
    monkeypatch.setenv('INPUT_OVERWRITE_FILES', 'false')
    monkeypatch.setenv('INPUT_UPDATE_TAG', 'true')

    result = runner.invoke(app, [
        'publish', '--repository', 'o/r', '--token', 't', '--overwrite-files',
    ])

    assert result.exit_code == 0, result.output
    config = mock_publisher.publish.call_args.args[0]
    assert config.overwrite_files is True
    assert config.update_tag is True


def test_files_from_env_keep_spaces_in_paths(mock_publisher, monkeypatch):
    monkeypatch.setenv('INPUT_FILES', 'dist/My App.zip\ndist/other.tar.gz')

    result = runner.invoke(app, ['publish', '--repository', 'o/r', '--token', 't'])

    assert result.exit_code == 0, result.output
    config = mock_publisher.publish.call_args.args[0]
    assert config.files == ('dist/My App.zip', 'dist/other.tar.gz')


def test_files_option_wins_over_env(mock_publisher, monkeypatch):
    monkeypatch.setenv('INPUT_FILES', 'dist/*.zip')

    result = runner.invoke(app, [
        'publish', '--repository', 'o/r', '--token', 't', '-f', 'build/*.whl',
    ])

    assert result.exit_code == 0, result.output
    config = mock_publisher.publish.call_args.args[0]
    assert config.files == ('build/*.whl',)
