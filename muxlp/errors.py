"""Exceptions raised while aggregating and valuing MUXLP liquidity."""

from typing import Optional


class LiquidityError(Exception):
    """Base class for every fatal aggregation/valuation failure."""


class MissingPriceError(LiquidityError):
    def __init__(self, symbol: str):
        super().__init__(f"price not found for {symbol}")
        self.symbol = symbol


class DanglingDexReferenceError(LiquidityError):
    """A dex entry points at an asset that is disabled or absent on its chain."""

    def __init__(self, chain: Optional[str], dex_index: int, asset_id: int, symbol: Optional[str] = None):
        where = f"{chain} " if chain else ""
        if symbol is None:
            msg = f"{where}dex #{dex_index} references unknown asset id {asset_id}"
        else:
            msg = f"{where}dex #{dex_index} references {symbol} (asset id {asset_id}) which is disabled or absent on that chain"
        super().__init__(msg)
        self.chain = chain
        self.dex_index = dex_index
        self.asset_id = asset_id
        self.symbol = symbol


class MalformedDexError(LiquidityError):
    """A dex entry whose assetIds and liquidityBalance lists differ in length."""

    def __init__(self, chain: Optional[str], dex_index: int, n_ids: int, n_balances: int):
        where = f"{chain} " if chain else ""
        super().__init__(
            f"{where}dex #{dex_index} has {n_ids} asset ids but {n_balances} liquidity balances"
        )
        self.chain = chain
        self.dex_index = dex_index


class DivisionByZeroError(LiquidityError, ZeroDivisionError):
    pass


class PriceFeedError(LiquidityError):
    pass


class ChainReadError(LiquidityError):
    def __init__(self, chain: str, reason: str):
        super().__init__(f"{chain}: {reason}")
        self.chain = chain
