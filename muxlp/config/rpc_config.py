"""
RPC URL resolution for MUXLP chains.
"""

import os
from typing import Any, Dict, Optional, Tuple

from . import _env_key, get_chain


def get_rpc_url(chain: str, cfg: Optional[Dict[str, Any]] = None) -> str:
    """
    Get RPC URL for a chain.

    Args:
        chain: Chain name (e.g., 'arbitrum', 'bsc')
        cfg: Parsed chains.yaml (defaults to the loaded CHAIN_CFG)

    Returns:
        RPC URL, MUXLP_RPC_<CHAIN> taking precedence over chains.yaml
    """
    override = os.getenv(_env_key("MUXLP_RPC", chain), "").strip()
    if override:
        return override

    url = get_chain(chain, cfg).get("rpc")
    if not url:
        raise ValueError(f"No RPC configured for {chain}")
    return url


def get_rpc_endpoint(chain: str, cfg: Optional[Dict[str, Any]] = None) -> Tuple[str, Optional[int], bool]:
    """Return (rpc_url, chain_id, poa) for building a provider."""
    c = get_chain(chain, cfg)
    chain_id = c.get("chain_id")
    return get_rpc_url(chain, cfg), (int(chain_id) if chain_id is not None else None), bool(c.get("poa", False))
