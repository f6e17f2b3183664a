"""Chain and price-feed configuration loaded from chains.yaml (env vars override)."""
import os
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List

import yaml

from ..ledger import to_decimal

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "chains.yaml"


def _load_chain_cfg(path=None) -> Dict[str, Any]:
    """
    Load chains.yaml.
    Precedence for the file itself:
      1) explicit path argument
      2) MUXLP_CONFIG environment variable
      3) the chains.yaml shipped next to this module
    """
    path = Path(path or os.getenv("MUXLP_CONFIG") or DEFAULT_CONFIG_PATH)
    with path.open("r") as f:
        cfg = yaml.safe_load(f) or {}
    cfg.setdefault("chains", {})
    cfg.setdefault("price_api", {})
    return cfg


CHAIN_CFG = _load_chain_cfg()


def _env_key(prefix: str, chain: str) -> str:
    return f"{prefix}_{chain.upper().replace('-', '_')}"


def get_pre_mined_supply(cfg: Dict[str, Any] = None) -> Decimal:
    cfg = CHAIN_CFG if cfg is None else cfg
    raw = os.getenv("MUXLP_PRE_MINED_SUPPLY", "").strip() or cfg.get("pre_mined_token_total_supply")
    if raw is None:
        raise ValueError("pre_mined_token_total_supply is not configured")
    return to_decimal(raw)


PRE_MINED_TOKEN_TOTAL_SUPPLY = get_pre_mined_supply()


def get_chain(chain: str, cfg: Dict[str, Any] = None) -> Dict[str, Any]:
    cfg = CHAIN_CFG if cfg is None else cfg
    chain = chain.lower()
    chains = cfg["chains"]
    if chain not in chains:
        raise ValueError(f"Unknown chain: {chain}")
    return chains[chain] or {}


def enabled_chains(cfg: Dict[str, Any] = None) -> List[str]:
    """Configured chain names with enabled != false, in file order."""
    cfg = CHAIN_CFG if cfg is None else cfg
    return [name for name, c in cfg["chains"].items() if (c or {}).get("enabled", True)]


def get_reader_address(chain: str, cfg: Dict[str, Any] = None) -> str:
    addr = os.getenv(_env_key("MUXLP_READER", chain), "").strip() or get_chain(chain, cfg).get("reader")
    if isinstance(addr, int):
        # unquoted 0x... in YAML parses as an int
        addr = f"0x{addr:040x}"
    if not addr:
        raise ValueError(
            f"No Reader address for {chain}. "
            f"Set 'reader' in chains.yaml or export {_env_key('MUXLP_READER', chain)}."
        )
    return addr


def get_price_api(cfg: Dict[str, Any] = None) -> Dict[str, Any]:
    cfg = CHAIN_CFG if cfg is None else cfg
    api = dict(cfg["price_api"])
    url = os.getenv("MUXLP_PRICE_API", "").strip() or api.get("url")
    if not url:
        raise ValueError("price_api.url is not configured")
    api["url"] = url
    api.setdefault("timeout_sec", 10)
    api.setdefault("max_tries", 4)
    return api
