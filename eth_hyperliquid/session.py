"""Rate limited, retrying HTTP session for the Hyperliquid API.

:py:class:`~eth_hyperliquid.exchange.HyperliquidExchange` and the
:py:mod:`~eth_hyperliquid.api` helpers post every request through one
:py:class:`requests.Session`. Metadata loads, mid price lookups for market
orders and signed ``/exchange`` actions all count against the same per-IP
weight budget, so the limiter state lives in a SQLite file that every
process and thread on the host shares.

Retries cover connection failures and ``429`` / ``5xx`` responses.
Signed actions are POSTs and are sent only once unless ``retry_post`` is set.
"""

import logging
from pathlib import Path

from pyrate_limiter import SQLiteBucket
from requests import Session
from requests_ratelimiter import LimiterAdapter

from eth_hyperliquid.logging_retry import LoggingRetry

logger = logging.getLogger(__name__)

#: Limiter state, shared by every session on the host
HYPERLIQUID_RATE_LIMIT_SQLITE_DATABASE = Path("~/.cache/eth-hyperliquid/rate-limit.sqlite").expanduser()

#: Retry attempts after the first request
DEFAULT_RETRIES = 5

#: Seconds, doubled on each retry
DEFAULT_BACKOFF_FACTOR = 0.5

#: Request rate of a session.
#:
#: Hyperliquid has a limit of 1200 weight per minute per IP.
#: Exchange actions weigh 1 + floor(batch length / 40), info requests mostly 20.
#:
#: See https://hyperliquid.gitbook.io/hyperliquid-docs/for-developers/api/rate-limits-and-user-limits
DEFAULT_REQUESTS_PER_SECOND = 2.0

#: Responses worth another attempt
RETRY_STATUS_CODES = (429, 500, 502, 503, 504)


def create_retry_policy(
    retries: int = DEFAULT_RETRIES,
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
    retry_post: bool = False,
) -> LoggingRetry:
    """Retry policy mounted on the session adapters."""
    allowed_methods = LoggingRetry.DEFAULT_ALLOWED_METHODS
    if retry_post:
        allowed_methods = allowed_methods | {"POST"}

    return LoggingRetry(
        total=retries,
        backoff_factor=backoff_factor,
        status_forcelist=RETRY_STATUS_CODES,
        respect_retry_after_header=True,
        allowed_methods=allowed_methods,
        logger=logger,
    )


def create_hyperliquid_session(
    retries: int = DEFAULT_RETRIES,
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
    requests_per_second: float = DEFAULT_REQUESTS_PER_SECOND,
    pool_maxsize: int = 32,
    rate_limit_db_path: Path = HYPERLIQUID_RATE_LIMIT_SQLITE_DATABASE,
    retry_post: bool = False,
) -> Session:
    """Create the session used to talk to ``/info`` and ``/exchange``.

    Every request waits for a slot in the shared rate limiter. A retried request
    is logged as a warning through :py:class:`~eth_hyperliquid.logging_retry.LoggingRetry`
    and honours the ``Retry-After`` header.

    Example::

        from eth_hyperliquid.session import create_hyperliquid_session
        from eth_hyperliquid.metadata import fetch_asset_metadata

        session = create_hyperliquid_session(retry_post=True)
        metadata = fetch_asset_metadata(session, "https://api.hyperliquid.xyz")

    :param retries:
        Attempts after the first one
    :param backoff_factor:
        Base of the exponential delay between attempts, seconds
    :param requests_per_second:
        Request rate shared by every user of ``rate_limit_db_path``
    :param pool_maxsize:
        Connections kept open per host
    :param rate_limit_db_path:
        SQLite file holding the limiter buckets
    :param retry_post:
        Retry POST requests too.

        ``/info`` is POST only, so read only clients want this.
        Resending a signed ``/exchange`` action is safe as the exchange rejects
        a reused nonce, but the caller then sees the rejection instead of the first outcome.
    """
    rate_limit_db_path.parent.mkdir(parents=True, exist_ok=True)

    adapter = LimiterAdapter(
        per_second=requests_per_second,
        max_retries=create_retry_policy(retries, backoff_factor, retry_post),
        pool_connections=pool_maxsize,
        pool_maxsize=pool_maxsize,
        bucket_class=SQLiteBucket,
        bucket_kwargs={"path": str(rate_limit_db_path)},
    )

    session = Session()
    for prefix in ("http://", "https://"):
        session.mount(prefix, adapter)
    return session
