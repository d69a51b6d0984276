# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import dataclasses
import enum
import typing


RELEASE_NOTE_LABEL_PREFIX = 'release-note/'
BACKPORT_DONE_LABEL_PREFIX = 'backport-done/'


class ReleaseNoteCategory(enum.StrEnum):
    SECURITY = 'release-note/security'
    MAJOR = 'release-note/major'
    MINOR = 'release-note/minor'
    BUG = 'release-note/bug'
    CI = 'release-note/ci'
    MISC = 'release-note/misc'
    NONE = 'release-note/none'

    @staticmethod
    def category_title(category: 'ReleaseNoteCategory') -> str:
        return {
            ReleaseNoteCategory.SECURITY: '**Important Security Updates:**',
            ReleaseNoteCategory.MAJOR: '**Major Changes:**',
            ReleaseNoteCategory.MINOR: '**Minor Changes:**',
            ReleaseNoteCategory.BUG: '**Bugfixes:**',
            ReleaseNoteCategory.CI: '**CI Changes:**',
            ReleaseNoteCategory.MISC: '**Misc Changes:**',
            ReleaseNoteCategory.NONE: '**Other Changes:**',
        }[category]


# rendering priority, highest first
DEFAULT_CATEGORY_ORDER = (
    ReleaseNoteCategory.SECURITY,
    ReleaseNoteCategory.MAJOR,
    ReleaseNoteCategory.MINOR,
    ReleaseNoteCategory.BUG,
    ReleaseNoteCategory.CI,
    ReleaseNoteCategory.MISC,
    ReleaseNoteCategory.NONE,
)


@dataclasses.dataclass(frozen=True)
class PullRequest:
    '''
    release-note relevant data of a single (closed) pull request.

    `release_label` is kept as plain label-name (rather than `ReleaseNoteCategory`) so that
    labels carrying the release-note prefix, but not (yet) known to this tool survive a
    checkpoint round-trip. `backport_branches` is always empty for upstream pull requests
    linked from a backport.
    '''
    release_note: str
    release_label: str = ReleaseNoteCategory.NONE.value
    author_name: str = ''
    backport_branches: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()

    @property
    def category(self) -> ReleaseNoteCategory | None:
        try:
            return ReleaseNoteCategory(self.release_label)
        except ValueError:
            return None


PullRequests: typing.TypeAlias = dict[int, PullRequest]
# backport-pr-number -> upstream-pr-number -> upstream pull request
BackportAssociation: typing.TypeAlias = dict[int, PullRequests]
# pr-number -> platform-internal (graphql) node-id
NodeIdIndex: typing.TypeAlias = dict[int, str]


@dataclasses.dataclass
class ResolutionState:
    '''
    unit of persistence (see `changelog.state`). Mutated in-place while resolving commits;
    `shas` holds the commits that still need to be resolved (empty once resolution completed).
    '''
    backport_prs: BackportAssociation = dataclasses.field(default_factory=dict)
    pull_requests: PullRequests = dataclasses.field(default_factory=dict)
    node_ids: NodeIdIndex = dataclasses.field(default_factory=dict)
    shas: list[str] = dataclasses.field(default_factory=list)

    def knows(self, number: int) -> bool:
        '''
        returns whether the given pull request was already resolved, in any role (standalone,
        backport, or upstream of a backport)
        '''
        return (
            number in self.pull_requests
            or number in self.backport_prs
            or self.linked_upstream(number) is not None
        )

    def linked_upstream(self, number: int) -> PullRequest | None:
        for upstream_prs in self.backport_prs.values():
            if number in upstream_prs:
                return upstream_prs[number]
        return None

    @property
    def completed(self) -> bool:
        return not self.shas


@dataclasses.dataclass(frozen=True)
class Standalone:
    number: int
    pull_request: PullRequest


@dataclasses.dataclass(frozen=True)
class Backport:
    number: int
    upstream_numbers: tuple[int, ...]


Classification: typing.TypeAlias = Standalone | Backport
