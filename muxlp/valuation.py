"""
MUXLP valuation: circulating supply, AUM and price per share.

    circulating = preMinedSupply - sum(lpDeduct of every chain)
    AUM         = sum over symbols of
                  lpBalance * price - longUpnl - shortUpnl
    price       = AUM / circulating

For non-stable symbols the pre-mined supply is also removed from lpBalance,
once per symbol regardless of how many chains report it.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import Iterable, List, Mapping

from .errors import DivisionByZeroError, MissingPriceError
from .ledger import DECIMAL_CONTEXT, ChainSnapshot, Ledger, aggregate_chains, total


@dataclass(frozen=True)
class SymbolValuation:
    symbol: str
    is_stable: bool
    lp_balance: Decimal
    price: Decimal
    long_upnl: Decimal
    short_upnl: Decimal
    contribution: Decimal


@dataclass(frozen=True)
class LiquiditySummary:
    aum: Decimal
    circulating_supply: Decimal
    price_per_share: Decimal
    assets: tuple = ()


def net_supply(base_supply: Decimal, per_chain_deductions: Iterable[Decimal]) -> Decimal:
    """Subtract each chain's lpDeduct from the pre-mined supply.

    A negative result is returned as-is.
    """
    supply = base_supply
    with localcontext(DECIMAL_CONTEXT):
        for deduction in per_chain_deductions:
            supply = supply - deduction
    return supply


def valuate_symbols(ledger: Ledger, prices: Mapping[str, Decimal], pre_mined_supply: Decimal) -> List[SymbolValuation]:
    """Value every ledger entry at its price, net of trader unrealized PnL.

    Raises MissingPriceError on the first symbol without a price; nothing is
    returned in that case.
    """
    rows = []
    with localcontext(DECIMAL_CONTEXT):
        for symbol, liquidity in ledger.items():
            lp_balance = liquidity.lp_balance
            if not liquidity.is_stable:
                lp_balance = lp_balance - pre_mined_supply
            price = prices.get(symbol)
            if price is None:
                raise MissingPriceError(symbol)
            # positive upnl is owed to traders
            long_upnl = liquidity.total_long_position * price - liquidity.long_entry_value
            short_upnl = liquidity.short_entry_value - liquidity.total_short_position * price
            rows.append(SymbolValuation(
                symbol=symbol,
                is_stable=liquidity.is_stable,
                lp_balance=lp_balance,
                price=price,
                long_upnl=long_upnl,
                short_upnl=short_upnl,
                contribution=lp_balance * price - long_upnl - short_upnl,
            ))
    return rows


def valuate(ledger: Ledger, prices: Mapping[str, Decimal], pre_mined_supply: Decimal) -> Decimal:
    return total([row.contribution for row in valuate_symbols(ledger, prices, pre_mined_supply)])


def price_per_share(aum: Decimal, circulating_supply: Decimal) -> Decimal:
    # NaN cannot be ordered against zero, so test it first
    if circulating_supply.is_nan() or circulating_supply <= 0:
        raise DivisionByZeroError(f"circulating supply is {circulating_supply}, cannot price MUXLP")
    with localcontext(DECIMAL_CONTEXT):
        return aum / circulating_supply


def compute_liquidity(
    snapshots: Iterable[ChainSnapshot],
    prices: Mapping[str, Decimal],
    pre_mined_supply: Decimal,
) -> LiquiditySummary:
    """Aggregate chain snapshots and price the pool in one pass."""
    ledger, deductions = aggregate_chains(snapshots)
    circulating = net_supply(pre_mined_supply, deductions)
    rows = valuate_symbols(ledger, prices, pre_mined_supply)
    aum = total([row.contribution for row in rows])
    return LiquiditySummary(
        aum=aum,
        circulating_supply=circulating,
        price_per_share=price_per_share(aum, circulating),
        assets=tuple(rows),
    )
