#!/usr/bin/env python3
# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import argparse
import logging
import signal
import sys

import ci.log
import changelog.config
import changelog.generate
import github
import github.platform

logger = logging.getLogger(__name__)


def parse_args(argv: list[str]=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description='generate release notes for a commit-range',
    )
    parser.add_argument(
        '--config',
        default=None,
        help='YAML-file to read defaults from (keys named like the long options, using `_`)',
    )
    parser.add_argument(
        '--repo',
        default=None,
        help='GitHub organisation and repository name, separated by a slash',
    )
    parser.add_argument('--base', default=None, help='base commit / tag (exclusive)')
    parser.add_argument('--head', default=None, help='head commit / tag (inclusive)')
    parser.add_argument(
        '--last-stable',
        default=None,
        help='''\
            if set, pull requests already backported to this stable branch (e.g. `1.6`) are
            considered released, and thus omitted
        ''',
    )
    parser.add_argument(
        '--state-file',
        default=None,
        help=f'checkpoint-file; resumed from if existing (default: {changelog.config.DEFAULT_STATE_FILE})',
    )
    parser.add_argument(
        '--label-filter',
        dest='label_filters',
        action='append',
        default=None,
        help='only include pull requests with this label (may be passed multiple times)',
    )
    parser.add_argument(
        '--release-labels',
        action='extend',
        type=lambda labels: labels.split(','),
        default=None,
        help='only render those release-note categories (e.g. `release-note/bug`)',
    )
    parser.add_argument(
        '--exclude-pr-references',
        action='store_true',
        default=None,
        help='do not reference pull requests and authors in release notes',
    )
    parser.add_argument(
        '--skip-header',
        action='store_true',
        default=None,
    )
    parser.add_argument('--github-url', default=None)
    parser.add_argument(
        '--github-auth-token',
        default=None,
        help='defaults to env-var GITHUB_TOKEN',
    )
    parser.add_argument(
        '--timeout',
        dest='timeout_seconds',
        type=float,
        default=None,
        help='timeout (in seconds) for each request against GitHub',
    )
    parser.add_argument(
        '--cache',
        action='store_true',
        default=False,
        help='use (etag-validated) caching of GitHub responses',
    )
    parser.add_argument(
        '--outfile',
        default='-',
        help='output file to write to (`-` for stdout, which is the default)',
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        default=False,
    )

    return parser.parse_args(argv)


def _raise_cancelled(signum, frame):
    raise changelog.generate.Cancelled(f'received signal {signal.Signals(signum).name}')


def main(argv: list[str]=None):
    parsed = parse_args(argv)

    ci.log.configure_default_logging(
        stdout_level=logging.DEBUG if parsed.verbose else logging.INFO,
    )

    try:
        defaults = changelog.config.load_defaults(parsed.config) if parsed.config else {}
        cfg = changelog.config.changelog_config(
            defaults=defaults,
            repo=parsed.repo,
            base=parsed.base,
            head=parsed.head,
            state_file=parsed.state_file,
            last_stable=parsed.last_stable,
            label_filters=parsed.label_filters,
            release_labels=parsed.release_labels,
            exclude_pr_references=parsed.exclude_pr_references,
            skip_header=parsed.skip_header,
            github_url=parsed.github_url,
            timeout_seconds=parsed.timeout_seconds,
        ).sanitise()
    except (ValueError, OSError) as e:
        logger.error(f'failed to validate configuration: {e}')
        sys.exit(1)

    github_api = github.github_api(
        github_url=cfg.github_url,
        token=parsed.github_auth_token,
        timeout_seconds=cfg.timeout_seconds,
        session_adapter=github.SessionAdapter.CACHE if parsed.cache else github.SessionAdapter.RETRY,
    )
    platform_api = github.platform.GithubPlatform(
        github_api=github_api,
        owner=cfg.owner,
        name=cfg.name,
    )

    signal.signal(signal.SIGTERM, _raise_cancelled)

    try:
        changelog_ = changelog.generate.generate_changelog(
            platform_api=platform_api,
            cfg=cfg,
        )
    except changelog.generate.Cancelled as c:
        logger.error(f'cancelled: {c}')
        sys.exit(143)
    except KeyboardInterrupt:
        logger.error('interrupted')
        sys.exit(130)
    except Exception as e:
        logger.error(f'unable to retrieve PRs for commits: {e!r}')
        sys.exit(1)

    rendered = changelog_.render()

    if parsed.outfile == '-':
        sys.stdout.write(rendered.text)
    else:
        with open(parsed.outfile, 'w') as f:
            f.write(rendered.text)

    if rendered.notice:
        logger.warning(rendered.notice)


if __name__ == '__main__':
    main()
