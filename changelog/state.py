# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
checkpointing of (partial) resolution results, so that an interrupted or failed run can be
resumed without issueing the same API requests again.

Checkpoints are stored as JSON documents. Documents written by this module carry a
`schema_version`; documents without one are expected to use the field names of the original
(pre-versioned) checkpoint format.
'''

import dataclasses
import json
import logging
import os
import tempfile

import dacite

import changelog.model as cm

logger = logging.getLogger(__name__)


SCHEMA_VERSION = 1

# pre-versioned checkpoint documents (schema-version 0)
_LEGACY_FIELDS = {
    'BackportPRs': 'backport_prs',
    'PullRequests': 'pull_requests',
    'NodeIDs': 'node_ids',
    'SHAs': 'shas',
}
_LEGACY_PULL_REQUEST_FIELDS = {
    'ReleaseNote': 'release_note',
    'ReleaseLabel': 'release_label',
    'AuthorName': 'author_name',
    'BackportBranches': 'backport_branches',
    'Labels': 'labels',
}


def exists(path: str) -> bool:
    return os.path.isfile(path)


def as_dict(state: cm.ResolutionState) -> dict:
    # json only allows for string-keys
    return {
        'schema_version': SCHEMA_VERSION,
        'backport_prs': {
            str(backport_number): {
                str(upstream_number): dataclasses.asdict(pull_request)
                for upstream_number, pull_request in upstream_prs.items()
            }
            for backport_number, upstream_prs in state.backport_prs.items()
        },
        'pull_requests': {
            str(number): dataclasses.asdict(pull_request)
            for number, pull_request in state.pull_requests.items()
        },
        'node_ids': {
            str(number): node_id
            for number, node_id in state.node_ids.items()
        },
        'shas': list(state.shas),
    }


def _pull_request(raw: dict) -> cm.PullRequest:
    return dacite.from_dict(
        data_class=cm.PullRequest,
        data={k: v for k, v in raw.items() if v is not None},
        config=dacite.Config(
            cast=[tuple],
        ),
    )


def _from_legacy_dict(raw: dict) -> dict:
    def pull_request(raw_pull_request: dict) -> dict:
        return {
            _LEGACY_PULL_REQUEST_FIELDS[k]: v
            for k, v in raw_pull_request.items()
            if k in _LEGACY_PULL_REQUEST_FIELDS
        }

    converted = {
        new_name: raw.get(legacy_name) or {}
        for legacy_name, new_name in _LEGACY_FIELDS.items()
    }
    converted['shas'] = raw.get('SHAs') or []
    converted['pull_requests'] = {
        number: pull_request(raw_pull_request)
        for number, raw_pull_request in converted['pull_requests'].items()
    }
    converted['backport_prs'] = {
        backport_number: {
            upstream_number: pull_request(raw_pull_request)
            for upstream_number, raw_pull_request in (upstream_prs or {}).items()
        }
        for backport_number, upstream_prs in converted['backport_prs'].items()
    }

    return converted


def from_dict(raw: dict) -> cm.ResolutionState:
    schema_version = raw.get('schema_version', 0)

    if schema_version == 0:
        raw = _from_legacy_dict(raw)
    elif schema_version != SCHEMA_VERSION:
        raise ValueError(
            f'unsupported checkpoint {schema_version=} (supported: {SCHEMA_VERSION})'
        )

    return cm.ResolutionState(
        backport_prs={
            int(backport_number): {
                int(upstream_number): _pull_request(raw_pull_request)
                for upstream_number, raw_pull_request in upstream_prs.items()
            }
            for backport_number, upstream_prs in raw['backport_prs'].items()
        },
        pull_requests={
            int(number): _pull_request(raw_pull_request)
            for number, raw_pull_request in raw['pull_requests'].items()
        },
        node_ids={
            int(number): node_id
            for number, node_id in raw['node_ids'].items()
        },
        shas=list(raw['shas']),
    )


def store(
    path: str,
    state: cm.ResolutionState,
):
    '''
    writes the given state to `path` (replacing any previous checkpoint). The checkpoint is
    first written to a temporary file (in the same directory), which then replaces `path`, so
    readers never see partially written checkpoints.
    '''
    contents = json.dumps(as_dict(state), indent=1)
    directory = os.path.dirname(os.path.abspath(path))

    with tempfile.NamedTemporaryFile(
        mode='w',
        dir=directory,
        prefix=f'.{os.path.basename(path)}.',
        suffix='.tmp',
        delete=False,
    ) as f:
        tmp_path = f.name
        try:
            f.write(contents)
        except OSError:
            f.close()
            os.unlink(tmp_path)
            raise

    try:
        os.chmod(tmp_path, 0o644)
        os.replace(tmp_path, path)
    except OSError:
        os.unlink(tmp_path)
        raise

    logger.debug(f'stored checkpoint to {path=} ({len(state.shas)} unprocessed commits)')


def load(path: str) -> cm.ResolutionState:
    '''
    reads a checkpoint previously written by `store`. Raises `ValueError` if the checkpoint
    cannot be read, or is not a valid checkpoint document.
    '''
    try:
        with open(path) as f:
            raw = json.load(f)
    except (OSError, ValueError) as e:
        raise ValueError(f'unable to read checkpoint from {path=}: {e}') from e

    if not isinstance(raw, dict):
        raise ValueError(f'not a checkpoint document: {path=}')

    try:
        return from_dict(raw)
    except (KeyError, TypeError, AttributeError, dacite.DaciteError) as e:
        raise ValueError(f'malformed checkpoint {path=}: {e!r}') from e
