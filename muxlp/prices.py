# prices.py
# Asset prices for AUM valuation: the MUX liquidity-asset HTTP feed with
# retry/backoff, or a local YAML/JSON file for running against your own oracle.

from __future__ import annotations

import random
import time
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, Optional

import requests
import yaml

from .errors import PriceFeedError
from .ledger import to_decimal


def _get_json(url: str, params: Optional[dict] = None, timeout: float = 10, max_tries: int = 4) -> dict:
    data = None
    for attempt in range(max_tries):
        try:
            r = requests.get(url, params=params, timeout=timeout)
        except requests.RequestException as e:
            if attempt + 1 >= max_tries:
                raise PriceFeedError(f"GET {url} failed after {max_tries} tries: {e}") from e
            sleep_s = min(30, 2 ** attempt + random.random())
            print(f"[net] GET {url} attempt {attempt+1} failed; sleeping {sleep_s:.1f}s")
            time.sleep(sleep_s)
            continue

        if r.status_code == 429 or 500 <= r.status_code < 600:
            if attempt + 1 >= max_tries:
                break
            sleep_s = min(30, 2 ** attempt + random.random())
            print(f"[rate] {r.status_code} on {url}; sleeping {sleep_s:.1f}s and retrying")
            time.sleep(sleep_s)
            continue

        try:
            r.raise_for_status()
            data = r.json()
        except (requests.HTTPError, ValueError) as e:
            raise PriceFeedError(f"GET {url}: {e}") from e
        break

    if data is None:
        raise PriceFeedError(f"GET failed after retries: {url}")
    return data


def parse_asset_prices(payload: dict) -> Dict[str, Decimal]:
    """{"assets": [{"symbol": "ETH", "price": "1830.5"}, ...]} -> {symbol: Decimal}"""
    assets = payload.get("assets") if isinstance(payload, dict) else None
    if not isinstance(assets, list):
        raise PriceFeedError("price payload has no 'assets' list")
    prices: Dict[str, Decimal] = {}
    for asset in assets:
        try:
            prices[asset["symbol"]] = to_decimal(asset["price"])
        except (KeyError, TypeError, InvalidOperation) as e:
            raise PriceFeedError(f"bad price entry {asset!r}") from e
    return prices


def fetch_asset_prices(url: str, timeout: float = 10, max_tries: int = 4) -> Dict[str, Decimal]:
    prices = parse_asset_prices(_get_json(url, timeout=timeout, max_tries=max_tries))
    print(f"[prices] {len(prices)} asset prices from {url}")
    return prices


def load_price_file(path) -> Dict[str, Decimal]:
    """
    Read prices from a YAML (or JSON, which YAML parses) file.
    Accepts either a flat {symbol: price} mapping or the feed's {"assets": [...]} shape.
    """
    path = Path(path)
    raw = yaml.safe_load(path.read_text()) or {}
    if isinstance(raw, dict) and "assets" in raw:
        prices = parse_asset_prices(raw)
    elif isinstance(raw, dict):
        try:
            prices = {str(sym): to_decimal(px) for sym, px in raw.items()}
        except InvalidOperation as e:
            raise PriceFeedError(f"{path}: non-numeric price") from e
    else:
        raise PriceFeedError(f"{path}: expected a mapping of symbol -> price")
    print(f"[prices] {len(prices)} asset prices from {path}")
    return prices
