import json
import os

import pytest

import changelog.model as cm
import changelog.state as cs


@pytest.fixture
def state() -> cm.ResolutionState:
    return cm.ResolutionState(
        backport_prs={
            1: {
                2: cm.PullRequest(
                    release_note='BarFoo',
                    release_label='release-note/major',
                    author_name='example',
                    labels=('release-note/major',),
                ),
            },
        },
        pull_requests={
            3: cm.PullRequest(
                release_note='FooBar',
                release_label='release-note/minor',
                author_name='example',
                backport_branches=('backport-done/1.5',),
                labels=('release-note/minor', 'backport-done/1.5'),
            ),
        },
        node_ids={
            3: 'abcdef',
        },
        shas=[
            '9ba79ef2517ede0ece6c1d1a7798c57d33d24f77',
            '9ba79ef2517ede0ece6c1d1a7798c57d33d24f72',
            '9ba79ef2517ede0ece6c1d1a7798c57d33d24f71',
        ],
    )


def test_store_and_load(tmp_path, state):
    path = str(tmp_path / 'release-state.json')

    cs.store(path, state)

    assert cs.exists(path)
    assert cs.load(path) == state
    # no temporary files are left behind
    assert os.listdir(tmp_path) == ['release-state.json']


def test_store_and_load_empty_state(tmp_path):
    path = str(tmp_path / 'release-state.json')

    cs.store(path, cm.ResolutionState())

    loaded = cs.load(path)
    assert loaded == cm.ResolutionState()
    assert loaded.completed


def test_store_replaces_previous_checkpoint(tmp_path, state):
    path = str(tmp_path / 'release-state.json')

    cs.store(path, state)
    state.shas = state.shas[1:]
    cs.store(path, state)

    assert cs.load(path).shas == state.shas


def test_stored_document(tmp_path, state):
    path = tmp_path / 'release-state.json'

    cs.store(str(path), state)
    raw = json.loads(path.read_text())

    assert raw['schema_version'] == cs.SCHEMA_VERSION
    assert set(raw['pull_requests']) == {'3'}
    assert raw['pull_requests']['3']['backport_branches'] == ['backport-done/1.5']
    assert raw['backport_prs']['1']['2']['release_note'] == 'BarFoo'
    assert raw['node_ids'] == {'3': 'abcdef'}


def test_load_legacy_checkpoint(tmp_path):
    path = tmp_path / 'release-state.json'
    path.write_text(json.dumps({
        'BackportPRs': {
            '1': {
                '2': {
                    'ReleaseNote': 'BarFoo',
                    'ReleaseLabel': 'release-note/major',
                    'AuthorName': 'example',
                    'BackportBranches': None,
                },
            },
        },
        'PullRequests': {
            '3': {
                'ReleaseNote': 'FooBar',
                'ReleaseLabel': 'release-note/minor',
                'AuthorName': 'example',
                'BackportBranches': ['backport-done/1.5'],
            },
        },
        'NodeIDs': {'3': 'abcdef'},
        'SHAs': ['9ba79ef2517ede0ece6c1d1a7798c57d33d24f77'],
    }, indent=1))

    state = cs.load(str(path))

    assert state.backport_prs == {
        1: {
            2: cm.PullRequest(
                release_note='BarFoo',
                release_label='release-note/major',
                author_name='example',
            ),
        },
    }
    assert state.pull_requests[3].backport_branches == ('backport-done/1.5',)
    assert state.pull_requests[3].labels == ()
    assert state.node_ids == {3: 'abcdef'}
    assert state.shas == ['9ba79ef2517ede0ece6c1d1a7798c57d33d24f77']


def test_load_legacy_checkpoint_with_null_fields(tmp_path):
    path = tmp_path / 'release-state.json'
    path.write_text(json.dumps({
        'BackportPRs': None,
        'PullRequests': None,
        'NodeIDs': None,
        'SHAs': None,
    }))

    assert cs.load(str(path)) == cm.ResolutionState()


def test_load_rejects_unknown_schema_version(tmp_path, state):
    path = tmp_path / 'release-state.json'
    raw = cs.as_dict(state)
    raw['schema_version'] = cs.SCHEMA_VERSION + 1
    path.write_text(json.dumps(raw))

    with pytest.raises(ValueError):
        cs.load(str(path))


@pytest.mark.parametrize(
    'contents',
    [
        'not json',
        '[]',
        '{"schema_version": 1}',
        '{"schema_version": 1, "backport_prs": {}, "pull_requests": {"x": {}}, "node_ids": {}, "shas": []}', # noqa:E501
    ],
)
def test_load_rejects_malformed_checkpoints(tmp_path, contents):
    path = tmp_path / 'release-state.json'
    path.write_text(contents)

    with pytest.raises(ValueError):
        cs.load(str(path))


def test_load_missing_checkpoint(tmp_path):
    path = str(tmp_path / 'does-not-exist.json')

    assert not cs.exists(path)
    with pytest.raises(ValueError):
        cs.load(path)
