from unittest.mock import MagicMock

import pytest

from ghrelease.core.config import ReleaseConfig
from ghrelease.core.errors import UnmatchedFilesError
from ghrelease.core.errors import UploadFailed
from ghrelease.models.release import Release
from ghrelease.services.publish_service import emit_outputs
from ghrelease.services.publish_service import PublishService
from ghrelease.services.publish_service import write_outputs


@pytest.fixture
def release():
    return Release.model_validate({
        'id': 12,
        'tag_name': 'v1.0',
        'html_url': 'https://github.com/o/r/releases/tag/v1.0',
        'upload_url': 'https://uploads.github.com/repos/o/r/releases/12/assets{?name,label}',
        'assets': [{'id': 1, 'name': 'old.zip'}],
    })


@pytest.fixture
def release_service(release):
    service = MagicMock()
    service.reconcile.return_value = release
    return service


@pytest.fixture
def asset_service():
    service = MagicMock()
    service.upload.side_effect = lambda config, url, path, current: {
        'name': path.name, 'uploader': {'login': 'bot'},
    }
    return service


@pytest.fixture
def publisher(release_service, asset_service):
    return PublishService(release_service, asset_service)


@pytest.fixture
def dist(tmp_path, monkeypatch):
    (tmp_path / 'dist').mkdir()
    for name in ('a.zip', 'b.zip', 'c.zip'):
        (tmp_path / 'dist' / name).write_bytes(name.encode())
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_publish_without_files(publisher, release_service, asset_service, release):
    config = ReleaseConfig('o/r', tag_name='v1.0')

    result = publisher.publish(config, max_retries=5)

    assert result.release is release
    assert result.assets == []
    release_service.reconcile.assert_called_once_with(config, 5)
    asset_service.upload.assert_not_called()


@pytest.mark.parametrize('workers', [1, 4])
def test_publish_uploads_every_file(publisher, asset_service, release, dist, workers):
    config = ReleaseConfig('o/r', files=('dist/*.zip',))

    result = publisher.publish(config, workers=workers)

    assert [a['name'] for a in result.assets] == ['a.zip', 'b.zip', 'c.zip']
    assert all('uploader' not in a for a in result.assets)
    assert result.stats.uploaded == 3
    for c in asset_service.upload.call_args_list:
        _, url, _, current = c.args
        assert url == 'https://uploads.github.com/repos/o/r/releases/12/assets'
        assert [a.name for a in current] == ['old.zip']


def test_skipped_assets_not_in_outputs(publisher, asset_service, dist):
    asset_service.upload.side_effect = [None, {'name': 'b.zip'}, None]
    config = ReleaseConfig('o/r', files=('dist/*.zip',))

    result = publisher.publish(config)

    assert result.assets == [{'name': 'b.zip'}]
    assert result.stats.skipped == 2
    assert result.stats.uploaded == 1


@pytest.mark.parametrize('workers', [1, 4])
def test_upload_failure_propagates(publisher, asset_service, dist, workers):
    asset_service.upload.side_effect = UploadFailed('a.zip', 500, 'boom')
    config = ReleaseConfig('o/r', files=('dist/*.zip',))

    with pytest.raises(UploadFailed):
        publisher.publish(config, workers=workers)


def test_concurrent_upload_failure_after_others_finish(publisher, asset_service, dist):
    def upload(config, url, path, current):
        if path.name == 'b.zip':
            raise UploadFailed('b.zip', 500, 'boom')
        return {'name': path.name}
    asset_service.upload.side_effect = upload
    config = ReleaseConfig('o/r', files=('dist/*.zip',))

    with pytest.raises(UploadFailed) as exc_info:
        publisher.publish(config, workers=3)

    assert exc_info.value.name == 'b.zip'
    assert asset_service.upload.call_count == 3


def test_unmatched_pattern_warns(publisher, asset_service, dist):
    config = ReleaseConfig('o/r', files=('dist/a.zip', 'missing/*.exe'))

    result = publisher.publish(config)

    assert asset_service.upload.call_count == 1
    assert result.assets == [{'name': 'a.zip'}]


def test_unmatched_pattern_fails_when_requested(publisher, asset_service, dist):
    config = ReleaseConfig(
        'o/r', files=('dist/a.zip', 'missing/*.exe'), fail_on_unmatched_files=True,
    )

    with pytest.raises(UnmatchedFilesError) as exc_info:
        publisher.publish(config)

    assert exc_info.value.patterns == ['missing/*.exe']
    asset_service.upload.assert_not_called()


def test_outputs(publisher, release, dist, tmp_path, monkeypatch):
    output_file = tmp_path / 'github_output'
    monkeypatch.setenv('GITHUB_OUTPUT', str(output_file))
    result = publisher.publish(ReleaseConfig('o/r', files=('dist/a.zip',)))

    emit_outputs(result)

    lines = output_file.read_text().splitlines()
    assert 'url=https://github.com/o/r/releases/tag/v1.0' in lines
    assert 'id=12' in lines
    assert 'assets=[{"name": "a.zip"}]' in lines


def test_write_outputs_appends(tmp_path):
    path = tmp_path / 'out'
    path.write_text('existing=1\n')

    write_outputs({'id': '3'}, path)

    assert path.read_text() == 'existing=1\nid=3\n'
