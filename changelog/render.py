# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import collections.abc
import dataclasses
import logging

import changelog.blocks as cb
import changelog.model as cm

logger = logging.getLogger(__name__)


HEADER = (
    'Summary of Changes',
    '------------------',
)


@dataclasses.dataclass(frozen=True)
class RenderedChangelog:
    text: str
    # standalone pull requests omitted as they were already released from last-stable branch
    suppressed: cm.PullRequests = dataclasses.field(default_factory=dict)
    notice: str | None = None


def category_order(
    release_labels: collections.abc.Collection[str]=(),
) -> tuple[cm.ReleaseNoteCategory, ...]:
    if not release_labels:
        return cm.DEFAULT_CATEGORY_ORDER

    return tuple(
        category for category in cm.DEFAULT_CATEGORY_ORDER
        if category in release_labels
    )


def filter_by_labels(
    pull_requests: cm.PullRequests,
    backport_prs: cm.BackportAssociation,
    label_filters: collections.abc.Collection[str],
) -> tuple[cm.PullRequests, cm.BackportAssociation]:
    '''
    returns copies of the given pull requests, retaining only those matching `label_filters`.
    Backports are matched by the labels of their upstream pull requests; backports without any
    matching upstream pull request are dropped.
    '''
    filtered_pull_requests = {
        number: pull_request
        for number, pull_request in pull_requests.items()
        if cb.matches(pull_request.labels, label_filters)
    }

    filtered_backport_prs = {}
    for backport_number, upstream_prs in backport_prs.items():
        matching = {
            upstream_number: upstream_pr
            for upstream_number, upstream_pr in upstream_prs.items()
            if cb.matches(upstream_pr.labels, label_filters)
        }
        if matching:
            filtered_backport_prs[backport_number] = matching

    return filtered_pull_requests, filtered_backport_prs


def is_released_from(
    pull_request: cm.PullRequest,
    last_stable: str,
) -> bool:
    if not last_stable:
        return False

    return any(last_stable in branch for branch in pull_request.backport_branches)


def release_note_line(
    pull_request: cm.PullRequest,
    number: int,
    upstream_number: int | None=None,
    exclude_pr_references: bool=False,
) -> str:
    line = f'* {pull_request.release_note}'

    if exclude_pr_references:
        return line

    if upstream_number is not None:
        return (
            f'{line} (Backport PR #{number}, Upstream PR #{upstream_number}, '
            f'@{pull_request.author_name})'
        )

    return f'{line} (#{number}, @{pull_request.author_name})'


def _sorted(lines: collections.abc.Iterable[str]) -> list[str]:
    # case-insensitive, ties broken by original spelling (for stable output)
    return sorted(lines, key=lambda line: (line.lower(), line))


def _render_categories(
    categories: collections.abc.Iterable[cm.ReleaseNoteCategory],
    lines_by_category: dict[cm.ReleaseNoteCategory, list[str]],
) -> list[str]:
    rendered = []
    for category in categories:
        if not (lines := lines_by_category.get(category)):
            continue
        rendered.append('')
        rendered.append(cm.ReleaseNoteCategory.category_title(category))
        rendered.extend(_sorted(lines))

    return rendered


def render(
    pull_requests: cm.PullRequests,
    backport_prs: cm.BackportAssociation,
    release_labels: collections.abc.Collection[str]=(),
    label_filters: collections.abc.Collection[str]=(),
    last_stable: str='',
    exclude_pr_references: bool=False,
    skip_header: bool=False,
) -> RenderedChangelog:
    '''
    renders the changelog for the given (resolved) pull requests, grouped by release-note
    category, and sorted (case-insensitively) within each category.

    If `last_stable` is set, standalone pull requests carrying a backport-done label for that
    branch are considered to have already been released, and are thus omitted. Those pull
    requests are instead listed in `RenderedChangelog.notice`.
    '''
    pull_requests, backport_prs = filter_by_labels(
        pull_requests=pull_requests,
        backport_prs=backport_prs,
        label_filters=label_filters,
    )
    logger.info(
        f'found {len(pull_requests)} PRs and {len(backport_prs)} backport PRs matching '
        f'{label_filters=}'
    )

    categories = category_order(release_labels)

    lines_by_category: dict[cm.ReleaseNoteCategory, list[str]] = {}
    suppressed_lines_by_category: dict[cm.ReleaseNoteCategory, list[str]] = {}
    suppressed: cm.PullRequests = {}

    for backport_number, upstream_prs in sorted(backport_prs.items()):
        for upstream_number, upstream_pr in sorted(upstream_prs.items()):
            if not (category := upstream_pr.category):
                logger.warning(
                    f'upstream PR #{upstream_number} has unknown {upstream_pr.release_label=}'
                )
                continue
            lines_by_category.setdefault(category, []).append(release_note_line(
                pull_request=upstream_pr,
                number=backport_number,
                upstream_number=upstream_number,
                exclude_pr_references=exclude_pr_references,
            ))

    for number, pull_request in sorted(pull_requests.items()):
        if not (category := pull_request.category):
            logger.warning(f'PR #{number} has unknown {pull_request.release_label=}')
            continue

        line = release_note_line(
            pull_request=pull_request,
            number=number,
            exclude_pr_references=exclude_pr_references,
        )

        if is_released_from(pull_request, last_stable):
            suppressed[number] = pull_request
            suppressed_lines_by_category.setdefault(category, []).append(line)
            continue

        lines_by_category.setdefault(category, []).append(line)

    lines = [] if skip_header else list(HEADER)
    lines.extend(_render_categories(categories, lines_by_category))

    notice_lines = _render_categories(categories, suppressed_lines_by_category)
    if notice_lines:
        notice = '\n'.join((
            'NOTICE: The following PRs were not included in the changelog as they were '
            f'backported to branch {last_stable} and assumed to be already released.',
            *notice_lines,
        ))
    else:
        notice = None

    return RenderedChangelog(
        text='\n'.join(lines) + '\n',
        suppressed=suppressed,
        notice=notice,
    )


def all_prs(
    state: cm.ResolutionState,
) -> tuple[set[int], cm.NodeIdIndex]:
    '''
    returns the numbers of all pull requests that are part of the changelog (standalone,
    backport, and upstream pull requests), and the node-id index (as needed for updating
    project boards).
    '''
    numbers = set(state.pull_requests)

    for backport_number, upstream_prs in state.backport_prs.items():
        numbers.add(backport_number)
        numbers.update(upstream_prs)

    return numbers, dict(state.node_ids)
