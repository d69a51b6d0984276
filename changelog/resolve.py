# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import collections.abc
import logging

import changelog.backport
import changelog.blocks as cb
import changelog.model as cm
import github.platform

logger = logging.getLogger(__name__)


def classify(remote: github.platform.RemotePullRequest) -> cm.Classification:
    '''
    classifies the given pull request as either standalone or backport (if its body contains a
    non-empty upstream-prs block).
    '''
    upstream_numbers = cb.upstream_pull_requests(remote.body)

    if upstream_numbers is None:
        return cm.Standalone(
            number=remote.number,
            pull_request=cb.pull_request_from_remote(remote),
        )

    return cm.Backport(
        number=remote.number,
        upstream_numbers=tuple(upstream_numbers),
    )


def resolve_commit(
    platform_api: github.platform.PlatformApi,
    sha: str,
    state: cm.ResolutionState,
) -> bool:
    '''
    resolves the pull requests containing the given commit into `state`. Pull requests known
    from `state` are neither fetched nor classified again.

    returns whether any (closed) pull request was found for the commit.
    '''
    found = False

    for remote in platform_api.pull_requests_for_commit(sha):
        if state.knows(remote.number):
            found = True
            continue

        if not remote.is_closed:
            logger.debug(f'ignoring PR #{remote.number} for {sha=} ({remote.state=})')
            continue

        found = True

        match classify(remote):
            case cm.Standalone(number=number, pull_request=pull_request):
                state.pull_requests[number] = pull_request
            case cm.Backport() as backport:
                upstream_prs, node_ids = changelog.backport.link_backport(
                    platform_api=platform_api,
                    backport=backport,
                    state=state,
                )
                state.backport_prs[backport.number] = upstream_prs
                state.node_ids.update(node_ids)
                # each pull request has exactly one role
                for upstream_number in upstream_prs:
                    state.pull_requests.pop(upstream_number, None)

        if remote.node_id:
            state.node_ids[remote.number] = remote.node_id

    return found


def resolve_commits(
    platform_api: github.platform.PlatformApi,
    shas: collections.abc.Sequence[str],
    state: cm.ResolutionState,
) -> cm.ResolutionState:
    '''
    resolves the given commits (in order) into `state`, which is modified in-place and returned.

    `state.shas` always reflects the commits not yet resolved: it is empty after successful
    completion, and holds the exact suffix of unprocessed commits (starting with the one being
    resolved) if an error (or interruption) occurs, in which case the error is re-raised.
    '''
    shas = list(shas)
    processed = 0
    commit_count = len(shas)

    try:
        for sha in shas:
            logger.info(f'processing commit {processed + 1}/{commit_count}: {sha}')

            if not resolve_commit(
                platform_api=platform_api,
                sha=sha,
                state=state,
            ):
                logger.warning(f'no PR found for commit {sha}')

            processed += 1
    finally:
        state.shas = shas[processed:]
        if state.shas:
            logger.warning(f'resolution interrupted - {len(state.shas)} commits left unprocessed')

    logger.info(
        f'found {len(state.pull_requests)} PRs and {len(state.backport_prs)} backport PRs'
    )
    return state
