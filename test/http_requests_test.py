import cachecontrol
import requests
import requests.adapters

import http_requests


def test_logging_retry_defaults():
    retry = http_requests.LoggingRetry()

    assert retry.total == 3
    assert retry.read is False
    assert 429 in retry.status_forcelist
    assert 503 in retry.status_forcelist

    assert http_requests.LoggingRetry(total=5).total == 5


def test_mount_default_adapter():
    session = http_requests.mount_default_adapter(
        session=requests.Session(),
        flags=http_requests.AdapterFlag.RETRY,
    )
    adapter = session.get_adapter('https://api.github.com')

    assert type(adapter) is requests.adapters.HTTPAdapter
    assert isinstance(adapter.max_retries, http_requests.LoggingRetry)


def test_mount_caching_adapter():
    session = http_requests.mount_default_adapter(
        session=requests.Session(),
        flags=http_requests.AdapterFlag.CACHE | http_requests.AdapterFlag.RETRY,
    )

    assert isinstance(session.get_adapter('https://api.github.com'), cachecontrol.CacheControlAdapter)
