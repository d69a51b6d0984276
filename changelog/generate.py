# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import dataclasses
import logging

import changelog.config
import changelog.model as cm
import changelog.render
import changelog.resolve
import changelog.state
import changelog.walk
import github.platform

logger = logging.getLogger(__name__)


class Cancelled(Exception):
    '''
    raised if the run was asked to terminate (e.g. upon SIGTERM)
    '''
    pass


@dataclasses.dataclass
class Changelog:
    config: changelog.config.ChangelogConfig
    state: cm.ResolutionState

    def render(self) -> changelog.render.RenderedChangelog:
        return changelog.render.render(
            pull_requests=self.state.pull_requests,
            backport_prs=self.state.backport_prs,
            release_labels=self.config.release_labels,
            label_filters=self.config.label_filters,
            last_stable=self.config.last_stable,
            exclude_pr_references=self.config.exclude_pr_references,
            skip_header=self.config.skip_header,
        )

    def all_prs(self) -> tuple[set[int], cm.NodeIdIndex]:
        return changelog.render.all_prs(self.state)


def store_state(
    path: str,
    state: cm.ResolutionState,
) -> bool:
    '''
    stores the given state, logging (rather than raising) errors, so that an error that occurred
    earlier is not masked.
    '''
    try:
        changelog.state.store(path, state)
    except OSError as e:
        logger.error(f'unable to store state to {path=}: {e}')
        return False

    logger.info(
        f'state stored successfully in {path} - pass the same state-file in the next run to '
        'continue'
    )
    return True


def initial_state(
    platform_api: github.platform.PlatformApi,
    cfg: changelog.config.ChangelogConfig,
) -> cm.ResolutionState:
    if changelog.state.exists(cfg.state_file):
        logger.info(f'found state file {cfg.state_file} - resuming from stored state')
        return changelog.state.load(cfg.state_file)

    shas = changelog.walk.walk_commit_range(
        platform_api=platform_api,
        base=cfg.base,
        head=cfg.head,
    )
    return cm.ResolutionState(shas=shas)


def generate_changelog(
    platform_api: github.platform.PlatformApi,
    cfg: changelog.config.ChangelogConfig,
) -> Changelog:
    '''
    resolves all pull requests for the commit-range configured in `cfg`.

    If the configured state-file exists, resolution is resumed from it (without walking the
    commit-range again). The resolution state is stored to the state-file after resolution,
    regardless of whether resolution succeeded; errors (including interruptions) are re-raised
    after storing.
    '''
    state = initial_state(
        platform_api=platform_api,
        cfg=cfg,
    )
    logger.info(f'found {len(state.shas)} commits to process')

    succeeded = False
    try:
        changelog.resolve.resolve_commits(
            platform_api=platform_api,
            shas=state.shas,
            state=state,
        )
        succeeded = True
    finally:
        if not succeeded:
            logger.warning(f'storing state in {cfg.state_file} before exiting due to error')
        store_state(cfg.state_file, state)

    return Changelog(
        config=cfg,
        state=state,
    )
