# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
transport-level handling of transient HTTP errors (and optional response-caching) for
`requests`-sessions.
'''

import enum
import logging

import cachecontrol
import requests

from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)


TRANSIENT_STATUS_CODES = (429, 500, 502, 503, 504)

_RETRY_DEFAULTS = dict(
    total=3,
    connect=3,
    # a request running into its read-timeout is fatal for callers
    read=False,
    status=3,
    redirect=False,
    status_forcelist=TRANSIENT_STATUS_CODES,
    raise_on_status=False,
    respect_retry_after_header=True,
    backoff_factor=1.0,
)


class AdapterFlag(enum.Flag):
    RETRY = enum.auto()
    CACHE = enum.auto()


class LoggingRetry(Retry):
    '''
    retries requests failing with transient errors (rate-limiting, server-side errors, refused
    connections), logging each retry. Keyword-arguments override the defaults.
    '''
    def __init__(self, **kwargs):
        super().__init__(**{**_RETRY_DEFAULTS, **kwargs})

    def increment(
        self,
        method=None,
        url=None,
        response=None,
        error=None,
        _pool=None,
        _stacktrace=None,
    ):
        # raises if retries are exhausted
        retry = super().increment(method, url, response, error, _pool, _stacktrace)

        if response is not None:
            reason = f'{response.status=}'
            if (rate_limit_remaining := response.headers.get('X-RateLimit-Remaining')):
                reason += f' {rate_limit_remaining=}'
        else:
            reason = f'{error=}'

        logger.warning(
            f'{method} {url} failed ({reason}) - will retry (attempt {len(retry.history)}, '
            f'{retry.total} retries left)'
        )
        return retry


def http_adapter(
    flags: AdapterFlag=AdapterFlag.RETRY,
    retry_cfg: Retry=None,
    max_pool_size: int=32, # requests-library default
) -> HTTPAdapter:
    adapter_kwargs = dict(
        pool_connections=max_pool_size,
        pool_maxsize=max_pool_size,
    )

    if AdapterFlag.RETRY in flags:
        adapter_kwargs['max_retries'] = retry_cfg or LoggingRetry()

    if AdapterFlag.CACHE in flags:
        # etag-validated (304) responses do not count against github's rate-limit
        return cachecontrol.CacheControlAdapter(
            cache_etags=True,
            **adapter_kwargs,
        )

    return HTTPAdapter(**adapter_kwargs)


def mount_default_adapter(
    session: requests.Session,
    flags: AdapterFlag=AdapterFlag.RETRY,
    retry_cfg: Retry=None,
    max_pool_size: int=32,
) -> requests.Session:
    adapter = http_adapter(
        flags=flags,
        retry_cfg=retry_cfg,
        max_pool_size=max_pool_size,
    )
    for prefix in ('http://', 'https://'):
        session.mount(prefix, adapter)

    return session
