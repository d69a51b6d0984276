# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import dataclasses
import logging

import changelog.blocks as cb
import changelog.model as cm
import github.platform

logger = logging.getLogger(__name__)


def link_backport(
    platform_api: github.platform.PlatformApi,
    backport: cm.Backport,
    state: cm.ResolutionState,
) -> tuple[cm.PullRequests, cm.NodeIdIndex]:
    '''
    resolves the upstream pull requests referenced by the given backport pull request.

    Upstream pull requests already known from `state` (linked from another backport, or resolved
    as standalone pull request) are not fetched again. Upstream pull requests that do not exist
    are skipped (with a warning). Other errors are propagated; `state` is never modified.

    returns the upstream pull requests (by number), and the node-ids of fetched upstream pull
    requests.
    '''
    upstream_prs: cm.PullRequests = {}
    node_ids: cm.NodeIdIndex = {}

    if not backport.upstream_numbers:
        logger.warning(f'backport PR #{backport.number} does not reference any upstream PR')

    for upstream_number in backport.upstream_numbers:
        if upstream_number in upstream_prs:
            continue

        if known := state.linked_upstream(upstream_number):
            upstream_prs[upstream_number] = known
            continue

        # resolved as standalone before; the caller turns it into an upstream pull request
        if standalone := state.pull_requests.get(upstream_number):
            upstream_prs[upstream_number] = dataclasses.replace(
                standalone,
                backport_branches=(),
            )
            continue

        if not (remote := platform_api.pull_request(upstream_number)):
            logger.warning(
                f'upstream PR #{upstream_number} not found (referenced from backport PR '
                f'#{backport.number})'
            )
            continue

        upstream_prs[upstream_number] = cb.pull_request_from_remote(
            remote=remote,
            include_backport_branches=False,
        )
        if remote.node_id:
            node_ids[upstream_number] = remote.node_id

    return upstream_prs, node_ids
