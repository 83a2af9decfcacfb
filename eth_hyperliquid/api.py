"""Raw calls to the Hyperliquid ``/info`` and ``/exchange`` endpoints.

Responses are returned as parsed JSON. Only the fields the
:py:mod:`~eth_hyperliquid.exchange` client needs are interpreted.

- `Info endpoint <https://hyperliquid.gitbook.io/hyperliquid-docs/for-developers/api/info-endpoint>`__

- `Exchange endpoint <https://hyperliquid.gitbook.io/hyperliquid-docs/for-developers/api/exchange-endpoint>`__
"""

import logging
from typing import Any

import requests
from eth_typing import HexAddress
from requests import Session

from eth_hyperliquid.errors import HyperliquidAPIError

logger = logging.getLogger(__name__)

#: Default HTTP timeout, seconds
DEFAULT_TIMEOUT = 30.0


def _post(session: Session, url: str, payload: dict, timeout: float) -> Any:
    try:
        response = session.post(
            url,
            json=payload,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
        )
        response.raise_for_status()
        return response.json()
    except requests.HTTPError as e:
        status_code = e.response.status_code if e.response is not None else None
        body = e.response.text if e.response is not None else ""
        raise HyperliquidAPIError(f"POST {url} failed with {status_code}: {body[0:256]}", status_code=status_code) from e
    except requests.RequestException as e:
        raise HyperliquidAPIError(f"POST {url} failed: {e}") from e


def post_info(
    session: Session,
    api_url: str,
    request_type: str,
    params: dict | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    """Make a request to the ``/info`` endpoint.

    :param request_type:
        E.g. ``"meta"``, ``"spotMeta"``, ``"allMids"``
    :param params:
        Additional request fields
    :return:
        Parsed JSON response
    """
    payload = {"type": request_type}
    if params:
        payload.update(params)
    logger.debug("Info request %s", payload)
    return _post(session, f"{api_url}/info", payload, timeout)


def post_exchange_request(
    session: Session,
    api_url: str,
    payload: dict,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict:
    """Submit a signed action to the ``/exchange`` endpoint.

    :param payload:
        Output of :py:meth:`eth_hyperliquid.signing.SignedAction.to_payload`
    :return:
        Response with ``status == "ok"``
    :raise HyperliquidAPIError:
        Transport failure, or the exchange answered with ``status == "err"``
    """
    action_type = payload["action"].get("type")
    logger.info("Posting %s action, nonce %s", action_type, payload["nonce"])
    result = _post(session, f"{api_url}/exchange", payload, timeout)
    if not isinstance(result, dict) or result.get("status") != "ok":
        raise HyperliquidAPIError(f"Exchange rejected {action_type} action: {result}", payload=result)
    return result


def fetch_all_mids(session: Session, api_url: str, dex: str = "", timeout: float = DEFAULT_TIMEOUT) -> dict[str, float]:
    """Mid prices of all coins on a dex."""
    params = {"dex": dex} if dex else None
    mids = post_info(session, api_url, "allMids", params, timeout)
    return {coin: float(px) for coin, px in mids.items()}


def fetch_position_size(session: Session, api_url: str, user: HexAddress, coin: str, timeout: float = DEFAULT_TIMEOUT) -> float | None:
    """Signed size of an open perp position, ``None`` if there is none.

    Positive for long, negative for short.
    """
    dex, separator, _ = coin.partition(":")
    params = {"user": user}
    if separator:
        params["dex"] = dex
    state = post_info(session, api_url, "clearinghouseState", params, timeout)
    for asset_position in state.get("assetPositions", []):
        position = asset_position["position"]
        if position["coin"] == coin:
            return float(position["szi"])
    return None
