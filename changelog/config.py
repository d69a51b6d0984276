# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import dataclasses
import logging
import urllib.parse

import dacite
import yaml

import changelog.model as cm
import github

logger = logging.getLogger(__name__)


DEFAULT_STATE_FILE = 'release-state.json'


@dataclasses.dataclass(frozen=True)
class ChangelogConfig:
    '''
    configuration of a changelog-run. Passed explicitly to all components.

    repo: `{owner}/{name}` of the GitHub repository
    base: commit or tag to start from (exclusive)
    head: commit or tag to end at (inclusive)
    state_file: path to checkpoint-file (resumed from if existing)
    last_stable: stable branch (e.g. `1.6`) to consider as already released
    label_filters: if set, only pull requests carrying one of those labels are included
    release_labels: if set, only release-note categories of those labels are rendered
    '''
    repo: str
    base: str = ''
    head: str = ''
    state_file: str = DEFAULT_STATE_FILE
    last_stable: str = ''
    label_filters: tuple[str, ...] = ()
    release_labels: tuple[str, ...] = ()
    exclude_pr_references: bool = False
    skip_header: bool = False
    github_url: str = github.DEFAULT_GITHUB_URL
    timeout_seconds: float = 45

    @property
    def owner(self) -> str:
        return github.owner_and_name(self.repo)[0]

    @property
    def name(self) -> str:
        return github.owner_and_name(self.repo)[1]

    def sanitise(self) -> 'ChangelogConfig':
        '''
        validates this configuration. Raises `ValueError` for invalid configurations.
        '''
        github.owner_and_name(self.repo)

        if not self.base:
            raise ValueError('base must not be empty')
        if not self.head:
            raise ValueError('head must not be empty')
        if not self.state_file:
            raise ValueError('state_file must not be empty')
        if 'v' in self.last_stable:
            raise ValueError(
                f"last_stable must not contain letters, expected format 'x.y': {self.last_stable=}"
            )
        parsed_url = urllib.parse.urlparse(self.github_url)
        if not parsed_url.scheme or not parsed_url.hostname:
            raise ValueError(f'invalid github_url: {self.github_url=}')
        if self.timeout_seconds <= 0:
            raise ValueError(f'timeout_seconds must be positive: {self.timeout_seconds=}')

        known_labels = {category.value for category in cm.ReleaseNoteCategory}
        if unknown := [label for label in self.release_labels if label not in known_labels]:
            raise ValueError(f'unknown release-labels: {unknown} (known: {sorted(known_labels)})')

        return self


def load_defaults(path: str) -> dict:
    '''
    reads changelog-configuration defaults from the given YAML-file. Keys are expected to match
    the attribute names of `ChangelogConfig`.
    '''
    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f'expected a mapping in config-file {path=}')

    if unknown := set(raw) - {field.name for field in dataclasses.fields(ChangelogConfig)}:
        raise ValueError(f'unknown attributes in config-file {path=}: {sorted(unknown)}')

    return raw


def changelog_config(
    defaults: dict | None=None,
    **overrides,
) -> ChangelogConfig:
    '''
    creates a `ChangelogConfig` from the given defaults (e.g. read from a config-file), with
    `overrides` taking precedence. Overrides that are `None` are ignored.
    '''
    raw = dict(defaults or {})
    raw.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return dacite.from_dict(
            data_class=ChangelogConfig,
            data=raw,
            config=dacite.Config(
                cast=[tuple, float],
                strict=True,
            ),
        )
    except dacite.DaciteError as de:
        raise ValueError(f'invalid configuration: {de}') from de
