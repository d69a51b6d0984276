'''
Changelog Generator

Generates release notes for a range of commits of a GitHub repository.

All commits between `base` (exclusive) and `head` (inclusive) are resolved to the (closed) pull
requests that contain them. Pull requests whose description references upstream pull requests
(in an `upstream-prs` block) are considered backports; for those, the release notes of the
referenced upstream pull requests are used. Release notes are taken from a pull request's
`release-note` block (falling back to its title), and grouped by its `release-note/*` label.

Resolution results are checkpointed to a state-file, which allows resuming interrupted (or
failed) runs without re-issuing API requests already done.
'''
