from pathlib import Path

import pytest

from ghrelease.core.files import resolve_paths
from ghrelease.core.files import unmatched_patterns


@pytest.fixture
def dist(tmp_path, monkeypatch):
    (tmp_path / 'dist' / 'nested').mkdir(parents=True)
    (tmp_path / 'dist' / 'app.zip').write_bytes(b'zip')
    (tmp_path / 'dist' / 'app.tar.gz').write_bytes(b'tgz')
    (tmp_path / 'dist' / 'nested' / 'extra.zip').write_bytes(b'zip')
    (tmp_path / 'README.md').write_text('readme')
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_resolve_paths_glob(dist):
    assert resolve_paths(['dist/*.zip']) == [Path('dist/app.zip')]


def test_resolve_paths_recursive(dist):
    assert resolve_paths(['dist/**/*.zip']) == [
        Path('dist/app.zip'),
        Path('dist/nested/extra.zip'),
    ]


def test_resolve_paths_dedupes_and_skips_directories(dist):
    paths = resolve_paths(['dist/*', 'dist/app.zip', 'README.md'])
    assert paths == [
        Path('README.md'),
        Path('dist/app.tar.gz'),
        Path('dist/app.zip'),
    ]


def test_unmatched_patterns(dist):
    assert unmatched_patterns(['dist/*.zip', 'missing/*.exe', 'dist/nested']) == [
        'missing/*.exe',
        'dist/nested',
    ]
