# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
walks a commit-range using the platform's compare-api.

The compare-api silently truncates long ranges to a bounded window containing the most recent
commits (ordered from base to head). For example, assuming commit-digests are integers, comparing
1...10 might return [6, 7, 8, 9, 10]. We store [10, 9, 8, 7, 6] and then compare 1...6, which
returns [2, 3, 4, 5, 6]. As 6 was already stored, [5, 4, 3, 2] is appended. Comparing 1...2
finally returns only [2], which yields no new commits, thus ending the walk.
'''

import collections.abc
import logging

import github.platform

logger = logging.getLogger(__name__)


def next_window(
    prior_head: str | None,
    window: collections.abc.Sequence[str],
) -> tuple[tuple[str, ...], str | None, bool]:
    '''
    processes one compare-window (ordered from base to head).

    `prior_head` is the head the window was requested for, or `None` for the first request
    (where head may be any ref, not only a commit-digest). The window is expected to end with
    `prior_head`, which was already collected from the previous window.

    returns a three-tuple of newly collected commit-digests (ordered from head to base), the head
    to request the next window for, and whether the range was exhausted.
    '''
    if not window:
        return (), prior_head, True

    if prior_head is None:
        fresh = window
    else:
        if window[-1] != prior_head:
            raise RuntimeError(
                f'expected compare-window to end with {prior_head=}, but got {window[-1]=}'
            )
        fresh = window[:-1]

    if not fresh:
        return (), prior_head, True

    return tuple(reversed(fresh)), fresh[0], False


def walk_commit_range(
    platform_api: github.platform.PlatformApi,
    base: str,
    head: str,
) -> list[str]:
    '''
    returns all commit-digests in `base...head` (excluding base), ordered from head to base.

    Any error raised by the platform-api is propagated; no partial result is returned.
    '''
    shas = []
    seen = set()
    prior_head = None
    cursor = head

    while True:
        logger.info(f'comparing {base}...{cursor}')
        window = platform_api.compare_commits(base=base, head=cursor)

        collected, prior_head, done = next_window(
            prior_head=prior_head,
            window=window,
        )
        for sha in collected:
            if sha in seen:
                continue
            seen.add(sha)
            shas.append(sha)

        if done:
            break
        cursor = prior_head

    logger.info(f'found {len(shas)} commits in {base}...{head}')
    return shas
