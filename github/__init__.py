# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import enum
import logging
import os
import urllib.parse

import github3
import github3.session

import http_requests

logger = logging.getLogger(__name__)

DEFAULT_GITHUB_URL = 'https://github.com'


class SessionAdapter(enum.Enum):
    NONE = None
    RETRY = 'retry'
    CACHE = 'cache'


def owner_and_name(
    repo_name: str,
) -> tuple[str, str]:
    '''
    splits a repository name in the form `{owner}/{name}` (e.g. `cilium/cilium`).

    raises `ValueError` if the given name is not of this form.
    '''
    if not repo_name:
        raise ValueError('repository name must not be empty')

    parts = repo_name.split('/')
    if len(parts) != 2 or not all(parts):
        raise ValueError(f'invalid repository name (expected <owner>/<name>): {repo_name=}')

    owner, name = parts
    return owner, name


def github_session(
    timeout_seconds: float,
    session_adapter: SessionAdapter=SessionAdapter.RETRY,
) -> github3.session.GitHubSession:
    '''
    returns a github3-session with bounded per-request timeouts. Requests exceeding the
    timeout raise (there is no retry for timed-out requests); responses indicating a transient
    error (429, 5xx) are retried by the mounted adapter.
    '''
    session = github3.session.GitHubSession(
        default_connect_timeout=min(4, timeout_seconds),
        default_read_timeout=timeout_seconds,
    )
    session_adapter = SessionAdapter(session_adapter)

    if session_adapter is SessionAdapter.NONE:
        pass
    elif session_adapter is SessionAdapter.RETRY:
        session = http_requests.mount_default_adapter(
            session=session,
            flags=http_requests.AdapterFlag.RETRY,
            max_pool_size=16, # increase with care, might cause github api "secondary-rate-limit"
        )
    elif session_adapter is SessionAdapter.CACHE:
        # etag-validated responses do not count against rate-limit
        session = http_requests.mount_default_adapter(
            session=session,
            flags=http_requests.AdapterFlag.CACHE | http_requests.AdapterFlag.RETRY,
            max_pool_size=16,
        )
    else:
        raise NotImplementedError(session_adapter)

    return session


def github_api(
    github_url: str=DEFAULT_GITHUB_URL,
    token: str=None,
    timeout_seconds: float=45,
    session_adapter: SessionAdapter=SessionAdapter.RETRY,
    verify_ssl: bool=True,
) -> github3.GitHub | github3.GitHubEnterprise:
    '''
    returns an initialised github-api instance for either github.com or a GitHub-Enterprise
    instance (derived from `github_url`). If no token is passed, `GITHUB_TOKEN` is honoured.
    '''
    parsed = urllib.parse.urlparse(github_url)
    if not parsed.scheme or not parsed.hostname:
        raise ValueError(f'failed to parse url: {github_url=}')

    token = token or os.environ.get('GITHUB_TOKEN')
    if not token:
        logger.warning('no github-auth-token - anonymous requests are subject to low rate-limits')

    session = github_session(
        timeout_seconds=timeout_seconds,
        session_adapter=session_adapter,
    )

    if parsed.hostname.lower() == 'github.com':
        return github3.GitHub(
            token=token,
            session=session,
        )

    return github3.GitHubEnterprise(
        url=github_url,
        token=token,
        verify=verify_ssl,
        session=session,
    )
