# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
parsing of the machine-readable parts of pull request descriptions and labels.

Two kinds of fenced "marker blocks" are recognised within pull request bodies:

```release-note
text to use in changelog (instead of pull request title)
```

```upstream-prs
$ for pr in 9959 9982 10005; do contrib/backporting/set-labels.py $pr done 1.6; done
```

The upstream-prs block may also contain a plain (whitespace-separated) list of pull request
numbers. Malformed blocks never raise; they yield empty results instead.
'''

import collections.abc

import changelog.model as cm
import github.platform


RELEASE_NOTE_BLOCK = '```release-note'
UPSTREAM_PRS_BLOCK = '```upstream-prs'
END_BLOCK = '```'
COMMENT_TAG = '<!--'

# telltales of upstream-prs blocks written in (legacy) shell-script style
_SHELL_LOOP_PREFIX = 'for pr in'
_SET_LABELS_SCRIPT = 'contrib/backporting/set-labels.py'
_PROMPT = '$ '


def text_block_between(
    body: str,
    start_block: str,
) -> str:
    '''
    returns the contents of the first fenced block opened by a line consisting of `start_block`,
    with all lines stripped and joined by a single space. If the block is not closed, all
    remaining lines are considered part of it. Returns an empty string if there is no such block.
    '''
    lines = [line.strip() for line in body.splitlines()]

    try:
        beginning = lines.index(start_block)
    except ValueError:
        return ''

    try:
        end = lines.index(END_BLOCK, beginning + 1)
    except ValueError:
        end = len(lines)

    return ' '.join(lines[beginning + 1:end]).strip()


def _parse_numbers(tokens: collections.abc.Iterable[str]) -> list[int]:
    numbers = []
    for token in tokens:
        try:
            numbers.append(int(token))
        except ValueError:
            continue
    return numbers


def _upstream_prs_from_shell_loop(body: str, block: str) -> list[int]:
    # for pr in 9959 9982 10005; do contrib/backporting/set-labels.py $pr done 1.6; done
    if _SHELL_LOOP_PREFIX not in body:
        return []

    block = block.removeprefix(_PROMPT)
    block = block.removeprefix(_SHELL_LOOP_PREFIX)
    loop_head = block.split(';')[0]

    return _parse_numbers(loop_head.split())


def _upstream_prs_from_list(block: str) -> list[int]:
    # 9959 9982 10005
    return _parse_numbers(block.split())


def upstream_pull_requests(body: str | None) -> list[int] | None:
    '''
    returns the upstream pull request numbers referenced from the given (backport) pull request
    body, or `None` if there is no (or only an empty) upstream-prs block, i.e. if the pull request
    is not a backport.

    An upstream-prs block that cannot be parsed yields an empty list.
    '''
    if not body or UPSTREAM_PRS_BLOCK not in body:
        return None

    if not (block := text_block_between(body, UPSTREAM_PRS_BLOCK)):
        return None

    if _SHELL_LOOP_PREFIX in block or _SET_LABELS_SCRIPT in block:
        return _upstream_prs_from_shell_loop(body=body, block=block)

    return _upstream_prs_from_list(block)


def release_note(
    title: str,
    body: str | None,
) -> str:
    '''
    returns the contents of the release-note block if present. Falls back to the title if
    there is no such block, if it is empty, or if it only contains the (commented-out)
    placeholder from the pull request template.
    '''
    if body and RELEASE_NOTE_BLOCK in body:
        block = text_block_between(body, RELEASE_NOTE_BLOCK)
        if block and COMMENT_TAG not in block:
            return block

    return title.strip()


def release_label(labels: collections.abc.Iterable[str]) -> str:
    for label in labels:
        if label.startswith(cm.RELEASE_NOTE_LABEL_PREFIX):
            return label

    return cm.ReleaseNoteCategory.NONE.value


def backport_branches(labels: collections.abc.Iterable[str]) -> tuple[str, ...]:
    return tuple(
        label for label in labels
        if label.startswith(cm.BACKPORT_DONE_LABEL_PREFIX)
    )


def matches(
    labels: collections.abc.Iterable[str],
    filters: collections.abc.Collection[str],
) -> bool:
    '''
    returns whether any of the given labels is contained in `filters`. An empty filter
    matches everything.
    '''
    if not filters:
        return True

    return any(label in filters for label in labels)


def pull_request_from_remote(
    remote: github.platform.RemotePullRequest,
    include_backport_branches: bool=True,
) -> cm.PullRequest:
    '''
    extracts release-note relevant data from the given pull request. Backport-branches are
    omitted for upstream pull requests linked from a backport.
    '''
    return cm.PullRequest(
        release_note=release_note(title=remote.title, body=remote.body),
        release_label=release_label(remote.labels),
        author_name=remote.author,
        backport_branches=backport_branches(remote.labels) if include_backport_branches else (),
        labels=tuple(remote.labels),
    )
