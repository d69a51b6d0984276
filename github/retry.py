# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import functools
import logging
import time

import github3.exceptions

logger = logging.getLogger(__name__)


def _is_rate_limited(error: github3.exceptions.ForbiddenError) -> bool:
    message = error.message
    if isinstance(message, bytes):
        message = message.decode('utf-8')

    return 'rate limit' in (message or '').lower() or 'exceeded' in (message or '')


def retry_and_throttle(
    function: callable=None,
    /,
    retries: int=3,
    sleep_seconds: float=60,
):
    '''
    decorator intended to be used for retrying/throttling functions issueing github-api-requests
    that will sporadically run into (secondary) rate-limits, which github reports as HTTP-403.
    Other errors than github3.exceptions.ForbiddenError, or forbidden-errors not caused by
    rate-limiting, are re-raised immediately. After configured amount of retries, last exception
    is re-raised.

    may be used either as `@retry_and_throttle` or as `@retry_and_throttle(retries=...)`.
    '''
    def decorator(function):
        @functools.wraps(function)
        def call_with_retry(*args, **kwargs):
            remaining = retries
            while True:
                try:
                    return function(*args, **kwargs)
                except github3.exceptions.ForbiddenError as fbe:
                    if remaining <= 0 or not _is_rate_limited(fbe):
                        raise

                    remaining -= 1
                    logger.warning(
                        f'rate-limited by github: {fbe.message=} - will retry in '
                        f'{sleep_seconds}s ({remaining=})'
                    )
                    time.sleep(sleep_seconds)

        return call_with_retry

    if function is not None:
        return decorator(function)

    return decorator
