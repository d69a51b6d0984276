# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
read-only access to the code-hosting platform, as required for changelog generation.

`PlatformApi` is the port consumed by `changelog`; `GithubPlatform` implements it on top of
github3.py.
'''

import collections.abc
import dataclasses
import functools
import logging
import typing

import github3
import github3.exceptions as gh3e
import github3.pulls as gh3p
import github3.repos

import github.retry

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class RemotePullRequest:
    number: int
    state: str
    title: str
    body: str | None = None
    labels: tuple[str, ...] = ()
    author: str = ''
    node_id: str | None = None

    @property
    def is_closed(self) -> bool:
        # github reports merged pull requests as closed
        return self.state == 'closed'

    @staticmethod
    def from_dict(raw: dict) -> typing.Self:
        '''
        creates a RemotePullRequest from a pull-request (or issue) as returned by GitHub's
        REST-API.
        '''
        return RemotePullRequest(
            number=raw['number'],
            state=raw.get('state', ''),
            title=raw.get('title') or '',
            body=raw.get('body'),
            labels=tuple(label['name'] for label in raw.get('labels') or ()),
            author=(raw.get('user') or {}).get('login', ''),
            node_id=raw.get('node_id'),
        )


class PlatformApi(typing.Protocol):
    def compare_commits(self, base: str, head: str) -> list[str]:
        '''
        returns the commit-digests of one comparison-window between `base` and `head`, ordered
        from base to head. The platform may truncate long ranges.
        '''
        ...

    def pull_requests_for_commit(
        self,
        sha: str,
    ) -> collections.abc.Iterable[RemotePullRequest]:
        ...

    def pull_request(self, number: int) -> RemotePullRequest | None:
        '''
        returns None if there is no pull request of the given number
        '''
        ...

    def search_issues(self, query: str) -> collections.abc.Iterable[RemotePullRequest]:
        ...


class GithubPlatform:
    def __init__(
        self,
        github_api: github3.GitHub,
        owner: str,
        name: str,
    ):
        self.github = github_api
        self.owner = owner
        self.repository_name = name

    @functools.cached_property
    def repository(self) -> github3.repos.Repository:
        try:
            return self.github.repository(
                owner=self.owner,
                repository=self.repository_name,
            )
        except gh3e.NotFoundError as nfe:
            raise RuntimeError(
                f'failed to retrieve repository {self.owner}/{self.repository_name}',
                nfe,
            )

    @github.retry.retry_and_throttle
    def compare_commits(self, base: str, head: str) -> list[str]:
        comparison = self.repository.compare_commits(
            base=base,
            head=head,
        )
        return [commit.sha for commit in comparison.commits]

    # pylint: disable=protected-access
    # noinspection PyProtectedMember
    @github.retry.retry_and_throttle
    def pull_requests_for_commit(self, sha: str) -> tuple[RemotePullRequest, ...]:
        url = self.github._build_url(
            'repos', self.owner, self.repository_name, 'commits', sha, 'pulls',
        )
        try:
            # github3 follows pagination-links
            return tuple(
                RemotePullRequest.from_dict(pull_request.as_dict())
                for pull_request in self.github._iter(-1, url, gh3p.ShortPullRequest)
            )
        except gh3e.UnprocessableEntity as e:
            logger.debug(f'cannot find any pull request related to commit {sha}: {e}')
            return ()

    @github.retry.retry_and_throttle
    def pull_request(self, number: int) -> RemotePullRequest | None:
        try:
            pull_request = self.repository.pull_request(number)
        except gh3e.NotFoundError:
            return None

        return RemotePullRequest.from_dict(pull_request.as_dict())

    @github.retry.retry_and_throttle
    def search_issues(self, query: str) -> list[RemotePullRequest]:
        return [
            RemotePullRequest.from_dict(result.issue.as_dict())
            for result in self.github.search_issues(query)
        ]
