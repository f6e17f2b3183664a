"""
Cross-chain liquidity ledger.

Every chain reports the same MUXLP pool assets (by symbol). The ledger folds
those per-chain records into one entry per symbol:

1. merge_asset: add one chain's asset record into the symbol's running total
2. apply_chain: merge every asset of a chain, then add external dex liquidity
3. aggregate_chains: fold all chains in order, collecting lpDeduct per chain

All quantities are Decimal and are combined inside DECIMAL_CONTEXT so that
18-decimal token amounts never get rounded.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Context, Decimal, DivisionByZero, InvalidOperation, Overflow, localcontext
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import DanglingDexReferenceError, MalformedDexError

# uint256 values with 18 decimals need 78 digits; leave headroom for products.
DECIMAL_CONTEXT = Context(prec=160, traps=[DivisionByZero, InvalidOperation, Overflow])

ZERO = Decimal(0)


@dataclass(frozen=True)
class AssetRecord:
    symbol: str
    is_enabled: bool
    is_stable: bool
    spot_liquidity: Decimal = ZERO
    collected_fee: Decimal = ZERO
    deduct: Decimal = ZERO
    credit: Decimal = ZERO
    total_long_position: Decimal = ZERO
    total_short_position: Decimal = ZERO
    average_long_price: Decimal = ZERO
    average_short_price: Decimal = ZERO


@dataclass(frozen=True)
class DexRecord:
    # asset_ids index into ChainSnapshot.assets; liquidity_balance is parallel to it
    asset_ids: Tuple[int, ...]
    liquidity_balance: Tuple[Decimal, ...]


@dataclass(frozen=True)
class ChainSnapshot:
    assets: Tuple[AssetRecord, ...]
    dexes: Tuple[DexRecord, ...] = ()
    lp_deduct: Decimal = ZERO
    chain: Optional[str] = None


@dataclass
class AggregatedAsset:
    is_stable: bool = False
    lp_balance: Decimal = ZERO
    credit: Decimal = ZERO
    total_long_position: Decimal = ZERO
    total_short_position: Decimal = ZERO
    long_entry_value: Decimal = ZERO
    short_entry_value: Decimal = ZERO


Ledger = Dict[str, AggregatedAsset]


def merge_asset(ledger: Ledger, asset: AssetRecord) -> None:
    """Fold one chain's record for an asset into the symbol's ledger entry.

    Disabled assets are skipped without touching the ledger. isStable is taken
    from the latest chain that reports the symbol.
    """
    if not asset.is_enabled:
        return

    entry = ledger.get(asset.symbol)
    if entry is None:
        entry = ledger[asset.symbol] = AggregatedAsset()

    with localcontext(DECIMAL_CONTEXT):
        entry.is_stable = asset.is_stable
        entry.lp_balance = entry.lp_balance + asset.spot_liquidity - asset.collected_fee
        if not asset.is_stable:
            entry.lp_balance += asset.deduct
        entry.credit += asset.credit
        entry.total_long_position += asset.total_long_position
        entry.total_short_position += asset.total_short_position
        # cost basis is summed per chain, not re-derived from the running position
        entry.long_entry_value += asset.total_long_position * asset.average_long_price
        entry.short_entry_value += asset.total_short_position * asset.average_short_price


def apply_chain(ledger: Ledger, snapshot: ChainSnapshot) -> Decimal:
    """Merge a chain snapshot into the ledger and return its lpDeduct."""
    for asset in snapshot.assets:
        merge_asset(ledger, asset)

    for dex_index, dex in enumerate(snapshot.dexes):
        if len(dex.asset_ids) != len(dex.liquidity_balance):
            raise MalformedDexError(snapshot.chain, dex_index, len(dex.asset_ids), len(dex.liquidity_balance))
        for asset_id, balance in zip(dex.asset_ids, dex.liquidity_balance):
            if not 0 <= asset_id < len(snapshot.assets):
                raise DanglingDexReferenceError(snapshot.chain, dex_index, asset_id)
            asset = snapshot.assets[asset_id]
            # this chain's flags decide, not whether another chain created the entry
            if not asset.is_enabled:
                raise DanglingDexReferenceError(snapshot.chain, dex_index, asset_id, asset.symbol)
            with localcontext(DECIMAL_CONTEXT):
                ledger[asset.symbol].lp_balance += balance

    return snapshot.lp_deduct


def aggregate_chains(snapshots: Iterable[ChainSnapshot]) -> Tuple[Ledger, List[Decimal]]:
    """Build a fresh ledger from all snapshots, one chain at a time.

    Returns the ledger together with each chain's lpDeduct in input order.
    The ledger is owned by the caller from here on.
    """
    ledger: Ledger = {}
    deductions: List[Decimal] = []
    for snapshot in snapshots:
        deductions.append(apply_chain(ledger, snapshot))
    return ledger, deductions


def to_decimal(value) -> Decimal:
    """Coerce config/JSON numbers to Decimal without going through float."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(str(value).strip())


def total(values: Sequence[Decimal]) -> Decimal:
    with localcontext(DECIMAL_CONTEXT):
        return sum(values, ZERO)
