"""Loggable ``Retry()`` adapter for ``requests`` package"""

import logging

from urllib3 import Retry


class LoggingRetry(Retry):
    """Be verbose when the Hyperliquid API throttles us or fails transiently.

    Example how to use:

    .. code-block:: python

        from requests.sessions import HTTPAdapter

        retry_policy = LoggingRetry(
            total=5,
            backoff_factor=0.5,
            status_forcelist=[429, 500, 502, 503, 504],
        )
        session.mount("https://", HTTPAdapter(max_retries=retry_policy))
    """

    def __init__(self, *args, **kwargs):
        self.logger = kwargs.pop("logger", logging.getLogger(__name__))
        super().__init__(*args, **kwargs)

    def new(self, **kw):
        # urllib3 creates a fresh Retry on every increment, carry the logger over
        retry = super().new(**kw)
        retry.logger = self.logger
        return retry

    def increment(self, method=None, url=None, response=None, error=None, _pool=None, _stacktrace=None):
        if response:
            status = response.status
            reason = response.reason
        else:
            status = None
            reason = str(error)

        url_shortened = (url or "")[0:96]

        self.logger.warning("Retrying: %s %s (status: %s, reason: %s)", method, url_shortened, status, reason)
        return super().increment(method, url, response, error, _pool, _stacktrace)
