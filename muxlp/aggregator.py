from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

import pandas as pd
import requests
from web3.exceptions import Web3Exception

from .adapters.mux_reader import read_chain_snapshot
from .blockchain_utils import connect_chain
from .config import PRE_MINED_TOKEN_TOTAL_SUPPLY, enabled_chains, get_chain, get_reader_address
from .errors import ChainReadError, LiquidityError
from .ledger import ChainSnapshot
from .valuation import LiquiditySummary, compute_liquidity


def fetch_chain_snapshot(chain: str) -> ChainSnapshot:
    reader = get_reader_address(chain)
    try:
        w3 = connect_chain(chain)
    except (OSError, ValueError, requests.RequestException, Web3Exception) as e:
        raise ChainReadError(chain, str(e)) from e
    return read_chain_snapshot(w3, reader, chain)


def fetch_snapshots(
    chains: Sequence[str],
    workers: int = 1,
    fetch: Callable[[str], ChainSnapshot] = fetch_chain_snapshot,
) -> List[ChainSnapshot]:
    """
    Read every chain's snapshot. With workers > 1 the reads overlap, but the
    result is always in the order of `chains`.
    """
    if workers <= 1 or len(chains) <= 1:
        return [fetch(chain) for chain in chains]

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(fetch, chain) for chain in chains]
        # .result() re-raises the first failure in chain order
        return [f.result() for f in futures]


def resolve_chains(chains: Optional[Sequence[str]] = None) -> List[str]:
    if not chains:
        return enabled_chains()
    resolved = []
    for chain in chains:
        chain = chain.strip().lower()
        get_chain(chain)  # raises ValueError on unknown chains
        if chain not in resolved:
            resolved.append(chain)
    return resolved


def write_reports(summary: LiquiditySummary, chains: Sequence[str], out_root: str = "data/out") -> Dict[str, Path]:
    now_utc = datetime.now(timezone.utc)
    date_str = now_utc.strftime("%Y-%m-%d")
    out_dir = Path(out_root) / "muxlp"
    out_dir.mkdir(parents=True, exist_ok=True)

    assets_csv = out_dir / f"aum_assets_{date_str}.csv"
    summary_csv = out_dir / f"aum_summary_{date_str}.csv"

    # Decimals are written as plain strings so nothing is rounded through float
    assets_df = pd.DataFrame(
        [
            {
                "date": date_str,
                "symbol": row.symbol,
                "is_stable": row.is_stable,
                "lp_balance": f"{row.lp_balance:f}",
                "price_usd": f"{row.price:f}",
                "long_upnl": f"{row.long_upnl:f}",
                "short_upnl": f"{row.short_upnl:f}",
                "contribution_usd": f"{row.contribution:f}",
            }
            for row in summary.assets
        ],
        columns=["date", "symbol", "is_stable", "lp_balance", "price_usd",
                 "long_upnl", "short_upnl", "contribution_usd"],
    )
    assets_df.to_csv(assets_csv, index=False)

    summary_df = pd.DataFrame([{
        "date": date_str,
        "timestamp": int(now_utc.timestamp()),
        "chains": ",".join(chains),
        "n_chains": len(chains),
        "n_assets": len(summary.assets),
        "aum_usd": f"{summary.aum:f}",
        "circulating_supply": f"{summary.circulating_supply:f}",
        "price_per_share": f"{summary.price_per_share:f}",
    }])
    summary_df.to_csv(summary_csv, index=False)

    return {"assets": assets_csv, "summary": summary_csv}


def run(
    prices: Dict[str, Decimal],
    chains: Optional[Sequence[str]] = None,
    workers: int = 1,
    out_root: str = "data/out",
    no_write: bool = False,
    pre_mined_supply: Decimal = PRE_MINED_TOKEN_TOTAL_SUPPLY,
    fetch: Callable[[str], ChainSnapshot] = fetch_chain_snapshot,
) -> LiquiditySummary:
    chains = resolve_chains(chains)
    if not chains:
        print("[aum] ⚠️ no chains enabled; AUM will be zero")
    print(f"🔹 Reading {len(chains)} chain(s): {', '.join(chains)} (workers={workers})")

    snapshots = fetch_snapshots(chains, workers=workers, fetch=fetch)
    try:
        summary = compute_liquidity(snapshots, prices, pre_mined_supply)
    except LiquidityError as e:
        print(f"[aum] ❌ valuation aborted: {e}")
        raise

    if summary.aum < 0:
        print(f"[aum] ⚠️ negative AUM {summary.aum:f}: trader liabilities exceed backing")

    print(f"✅ {len(chains)} chains, {len(summary.assets)} assets aggregated")

    if not no_write:
        paths = write_reports(summary, chains, out_root)
        print(f"💾 Wrote assets → {paths['assets']}")
        print(f"💾 Wrote summary → {paths['summary']}")

    return summary
