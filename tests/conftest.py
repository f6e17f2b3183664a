from decimal import Decimal

import pytest

from muxlp.ledger import AssetRecord, ChainSnapshot, DexRecord


def D(value):
    return Decimal(str(value))


@pytest.fixture
def make_asset():
    """Factory for enabled asset records; numeric kwargs accept ints/strings."""

    def _make(symbol, is_stable=False, is_enabled=True, **amounts):
        return AssetRecord(
            symbol=symbol,
            is_enabled=is_enabled,
            is_stable=is_stable,
            **{k: D(v) for k, v in amounts.items()},
        )

    return _make


@pytest.fixture
def make_chain():
    def _make(assets, dexes=(), lp_deduct=0, chain=None):
        return ChainSnapshot(
            assets=tuple(assets),
            dexes=tuple(DexRecord(asset_ids=tuple(ids), liquidity_balance=tuple(D(b) for b in balances))
                        for ids, balances in dexes),
            lp_deduct=D(lp_deduct),
            chain=chain,
        )

    return _make


@pytest.fixture
def three_chains(make_asset, make_chain):
    """Arbitrum/BSC/Optimism-like snapshots sharing ETH and USDC."""
    arb = make_chain(
        [
            make_asset("USDC", is_stable=True, spot_liquidity="1000000", collected_fee="120.5",
                       deduct="999", credit="10"),
            make_asset("ETH", spot_liquidity="300.25", collected_fee="0.25", deduct="1000",
                       total_long_position="12", average_long_price="1800",
                       total_short_position="3", average_short_price="1900"),
        ],
        dexes=[((0, 1), ("5000", "2.5"))],
        lp_deduct="400",
        chain="arbitrum",
    )
    bsc = make_chain(
        [
            make_asset("ETH", spot_liquidity="100", deduct="1000",
                       total_long_position="4", average_long_price="1750.5"),
            make_asset("BNB", spot_liquidity="800", collected_fee="1", deduct="1000",
                       total_short_position="20", average_short_price="310"),
            make_asset("USDC", is_stable=True, spot_liquidity="250000.000001"),
        ],
        lp_deduct="250.5",
        chain="bsc",
    )
    op = make_chain(
        [
            make_asset("USDC", is_stable=True, spot_liquidity="42"),
            make_asset("ETH", spot_liquidity="7.000000000000000001", deduct="1000"),
        ],
        lp_deduct="0.000000000000000001",
        chain="optimism",
    )
    return [arb, bsc, op]


@pytest.fixture
def prices():
    return {"USDC": D("1.0001"), "ETH": D("1850.12"), "BNB": D("305.7")}
