import pytest

import changelog.walk as cw

from test._test_utils import FakePlatform


def history(length: int) -> list[str]:
    # base-commit first
    return ['base'] + [f'c{idx}' for idx in range(1, length + 1)]


def test_next_window():
    # first window: everything is new
    assert cw.next_window(prior_head=None, window=['c6', 'c7', 'c8']) == (
        ('c8', 'c7', 'c6'),
        'c6',
        False,
    )

    # follow-up windows end with the prior head, which was already collected
    assert cw.next_window(prior_head='c6', window=['c3', 'c4', 'c5', 'c6']) == (
        ('c5', 'c4', 'c3'),
        'c3',
        False,
    )

    # only the prior head is left
    assert cw.next_window(prior_head='c1', window=['c1']) == ((), 'c1', True)

    assert cw.next_window(prior_head=None, window=[]) == ((), None, True)
    assert cw.next_window(prior_head='c1', window=[]) == ((), 'c1', True)


def test_next_window_rejects_unexpected_window():
    with pytest.raises(RuntimeError):
        cw.next_window(prior_head='c6', window=['c3', 'c4', 'c5'])


@pytest.mark.parametrize('window_size', range(2, 7))
@pytest.mark.parametrize('length', range(0, 13))
def test_walk_commit_range_yields_each_commit_once(length, window_size):
    commits = history(length)
    platform = FakePlatform(
        commits=commits,
        window_size=window_size,
    )

    shas = cw.walk_commit_range(
        platform_api=platform,
        base='base',
        head='HEAD',
    )

    assert shas == list(reversed(commits[1:]))


def test_walk_commit_range_requests():
    platform = FakePlatform(
        commits=history(10),
        window_size=5,
    )

    shas = cw.walk_commit_range(platform_api=platform, base='base', head='c10')

    assert shas == [f'c{idx}' for idx in range(10, 0, -1)]
    # c10 (->c6..c10), c6 (->c2..c6), c2 (->c1, c2), c1 (->c1)
    assert platform.requests['compare_commits'] == 4


def test_walk_commit_range_single_window():
    platform = FakePlatform(
        commits=history(3),
        window_size=250,
    )

    assert cw.walk_commit_range(platform_api=platform, base='base', head='HEAD') == [
        'c3', 'c2', 'c1',
    ]


def test_walk_commit_range_propagates_errors():
    platform = FakePlatform(
        commits=history(10),
        window_size=5,
    )
    platform.errors[('compare_commits', 'c6')] = ConnectionError('connection reset')

    with pytest.raises(ConnectionError):
        cw.walk_commit_range(platform_api=platform, base='base', head='HEAD')


def test_walk_commit_range_rejects_inconsistent_windows():
    class ShiftingPlatform(FakePlatform):
        def compare_commits(self, base, head):
            window = super().compare_commits(base, head)
            # drop requested head, as if history had been rewritten
            return window[:-1] if head != 'HEAD' else window

    platform = ShiftingPlatform(
        commits=history(10),
        window_size=5,
    )

    with pytest.raises(RuntimeError):
        cw.walk_commit_range(platform_api=platform, base='base', head='HEAD')
