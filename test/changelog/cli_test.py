import unittest.mock

import pytest

import changelog.cli
import changelog.generate
import github.platform

from test._test_utils import (
    FakePlatform,
    release_note_body,
    remote_pr,
)


@pytest.fixture
def platform(monkeypatch):
    platform = FakePlatform(
        commits=['v1.0.0', 'A'],
        pulls_by_commit={
            'A': (
                remote_pr(
                    number=10,
                    body=release_note_body('fix X'),
                    labels=('release-note/bug',),
                    author='alice',
                ),
            ),
        },
    )
    monkeypatch.setattr(github.platform, 'GithubPlatform', lambda **kwargs: platform)
    monkeypatch.setattr(changelog.cli.signal, 'signal', unittest.mock.MagicMock())
    return platform


@pytest.fixture
def args(tmp_path):
    return [
        '--repo', 'example/project',
        '--base', 'v1.0.0',
        '--head', 'A',
        '--state-file', str(tmp_path / 'release-state.json'),
        '--github-auth-token', 'token',
    ]


def test_parse_args():
    parsed = changelog.cli.parse_args([
        '--repo', 'cilium/cilium',
        '--label-filter', 'a',
        '--label-filter', 'b',
        '--release-labels', 'release-note/bug,release-note/major',
        '--timeout', '10',
    ])

    assert parsed.label_filters == ['a', 'b']
    assert parsed.release_labels == ['release-note/bug', 'release-note/major']
    assert parsed.timeout_seconds == 10.0
    assert parsed.skip_header is None
    assert parsed.outfile == '-'


def test_main(platform, args, capsys):
    changelog.cli.main(args)

    assert capsys.readouterr().out == '\n'.join((
        'Summary of Changes',
        '------------------',
        '',
        '**Bugfixes:**',
        '* fix X (#10, @alice)',
    )) + '\n'


def test_main_writes_outfile(platform, args, tmp_path):
    outfile = tmp_path / 'CHANGELOG.md'

    changelog.cli.main(args + ['--outfile', str(outfile), '--skip-header'])

    assert outfile.read_text() == '\n**Bugfixes:**\n* fix X (#10, @alice)\n'


def test_main_rejects_invalid_config(platform):
    with pytest.raises(SystemExit) as se:
        changelog.cli.main(['--repo', 'no-owner', '--base', 'v1.0.0', '--head', 'A'])

    assert se.value.code == 1
    assert platform.requests == {}


@pytest.mark.parametrize(
    'error,exit_code',
    [
        (ConnectionError('connection reset'), 1),
        (KeyboardInterrupt(), 130),
        (changelog.generate.Cancelled('received signal SIGTERM'), 143),
    ],
)
def test_main_exit_codes(platform, args, error, exit_code):
    platform.errors[('pull_requests_for_commit', 'A')] = error

    with pytest.raises(SystemExit) as se:
        changelog.cli.main(args)

    assert se.value.code == exit_code


def test_main_rejects_invalid_github_url(platform, args):
    with pytest.raises(SystemExit) as se:
        changelog.cli.main(args + ['--github-url', 'not-an-url'])

    assert se.value.code == 1
    assert platform.requests == {}
