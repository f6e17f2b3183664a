"""
MUX Reader Adapter

Architecture:
- Reader: periphery contract deployed on every MUX chain
- getChainStorage(): one call returning pool params, every asset and every
  integrated dex pool of the chain

Snapshot extraction:
1. Call getChainStorage() on the chain's Reader
2. Decode each AssetStorage (symbol, flags, 18-decimal balances/positions)
3. Decode each DexStorage (asset ids + liquidity parked in that dex)
4. Return a ChainSnapshot with every amount already converted to Decimal
"""

import time
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from web3 import Web3

from ..errors import ChainReadError, MalformedDexError
from ..ledger import DECIMAL_CONTEXT, AssetRecord, ChainSnapshot, DexRecord

# Asset flag bits (AssetStorage.flags)
ASSET_IS_STABLE = 0x01
ASSET_CAN_ADD_REMOVE_LIQUIDITY = 0x02
ASSET_IS_TRADABLE = 0x04
ASSET_IS_OPENABLE = 0x08
ASSET_IS_SHORTABLE = 0x10
ASSET_USE_STABLE_TOKEN_FOR_PROFIT = 0x20
ASSET_IS_ENABLED = 0x40
ASSET_IS_STRICT_STABLE = 0x80

# Pool accounting is 18-decimal fixed point regardless of the token's decimals
POOL_DECIMALS = 18


def _c(name: str, typ: str, components: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    entry = {"internalType": typ, "name": name, "type": typ}
    if components is not None:
        entry["components"] = components
    return entry


POOL_STORAGE_COMPONENTS = [
    _c("shortFundingBaseRate8H", "uint32"),
    _c("shortFundingLimitRate8H", "uint32"),
    _c("fundingInterval", "uint32"),
    _c("liquidityBaseFeeRate", "uint32"),
    _c("liquidityDynamicFeeRate", "uint32"),
    _c("mlpPriceLowerBound", "uint96"),
    _c("mlpPriceUpperBound", "uint96"),
    _c("lastFundingTime", "uint32"),
    _c("sequence", "uint32"),
    _c("strictStableDeviation", "uint32"),
]

ASSET_STORAGE_COMPONENTS = [
    _c("symbol", "bytes32"),
    _c("tokenAddress", "address"),
    _c("muxTokenAddress", "address"),
    _c("id", "uint8"),
    _c("decimals", "uint8"),
    _c("flags", "uint56"),
    _c("initialMarginRate", "uint32"),
    _c("maintenanceMarginRate", "uint32"),
    _c("positionFeeRate", "uint32"),
    _c("liquidationFeeRate", "uint32"),
    _c("minProfitRate", "uint32"),
    _c("minProfitTime", "uint32"),
    _c("maxLongPositionSize", "uint96"),
    _c("maxShortPositionSize", "uint96"),
    _c("spotWeight", "uint32"),
    _c("longFundingBaseRate8H", "uint32"),
    _c("longFundingLimitRate8H", "uint32"),
    _c("referenceOracleType", "uint8"),
    _c("referenceOracle", "address"),
    _c("referenceDeviation", "uint32"),
    _c("halfSpread", "uint32"),
    _c("longCumulativeFundingRate", "uint128"),
    _c("shortCumulativeFunding", "uint128"),
    _c("spotLiquidity", "uint96"),
    _c("credit", "uint96"),
    _c("totalLongPosition", "uint96"),
    _c("totalShortPosition", "uint96"),
    _c("averageLongPrice", "uint96"),
    _c("averageShortPrice", "uint96"),
    _c("collectedFee", "uint128"),
    _c("deduct", "uint256"),
]

DEX_STORAGE_COMPONENTS = [
    _c("dexId", "uint8"),
    _c("dexType", "uint8"),
    _c("assetIds", "uint8[]"),
    _c("assetWeightInDEX", "uint32[]"),
    _c("totalSpotInDEX", "uint256[]"),
    _c("dexWeight", "uint32"),
    _c("dexLPBalance", "uint256"),
    _c("liquidityBalance", "uint256[]"),
]

CHAIN_STORAGE_COMPONENTS = [
    _c("pool", "tuple", POOL_STORAGE_COMPONENTS),
    _c("assets", "tuple[]", ASSET_STORAGE_COMPONENTS),
    _c("dexes", "tuple[]", DEX_STORAGE_COMPONENTS),
    _c("liquidityLockPeriod", "uint32"),
    _c("marketOrderTimeout", "uint32"),
    _c("maxLimitOrderTimeout", "uint32"),
    _c("lpDeduct", "uint256"),
    _c("stableDeduct", "uint256"),
    _c("isPositionOrderPaused", "bool"),
    _c("isLiquidityOrderPaused", "bool"),
]

READER_ABI = [
    {
        "inputs": [],
        "name": "getChainStorage",
        "outputs": [_c("chain", "tuple", CHAIN_STORAGE_COMPONENTS)],
        "stateMutability": "nonpayable",
        "type": "function",
    }
]


def _named(components: Sequence[Dict[str, Any]], values) -> Dict[str, Any]:
    """Turn a decoded ABI tuple into a dict keyed by component name (recursively)."""
    if isinstance(values, dict):
        values = [values[c["name"]] for c in components]
    out = {}
    for comp, value in zip(components, values):
        if comp["type"] == "tuple":
            value = _named(comp["components"], value)
        elif comp["type"] == "tuple[]":
            value = [_named(comp["components"], v) for v in value]
        out[comp["name"]] = value
    return out


def from_wei(raw: int, decimals: int = POOL_DECIMALS) -> Decimal:
    return Decimal(int(raw)).scaleb(-int(decimals), context=DECIMAL_CONTEXT)


def decode_symbol(raw) -> str:
    if isinstance(raw, str):
        return raw
    return bytes(raw).rstrip(b"\x00").decode("ascii", errors="replace")


def _safe_call(func, retries=2):
    """Call a contract function, retrying on connection errors. Other errors propagate."""
    for attempt in range(retries + 1):
        try:
            return func()
        except Exception as e:
            error_str = str(e).lower()
            if attempt < retries and ('connection' in error_str or 'remote' in error_str or 'timeout' in error_str):
                time.sleep(0.5 * (attempt + 1))
                continue
            raise


def decode_asset(asset: Dict[str, Any]) -> AssetRecord:
    flags = int(asset["flags"])
    return AssetRecord(
        symbol=decode_symbol(asset["symbol"]),
        is_enabled=bool(flags & ASSET_IS_ENABLED),
        is_stable=bool(flags & ASSET_IS_STABLE),
        spot_liquidity=from_wei(asset["spotLiquidity"]),
        collected_fee=from_wei(asset["collectedFee"]),
        deduct=from_wei(asset["deduct"]),
        credit=from_wei(asset["credit"]),
        total_long_position=from_wei(asset["totalLongPosition"]),
        total_short_position=from_wei(asset["totalShortPosition"]),
        average_long_price=from_wei(asset["averageLongPrice"]),
        average_short_price=from_wei(asset["averageShortPrice"]),
    )


def decode_chain_storage(storage: Dict[str, Any], chain: Optional[str] = None) -> ChainSnapshot:
    """Build a ChainSnapshot from a named getChainStorage() result."""
    assets = storage["assets"]
    dexes = []
    for dex_index, dex in enumerate(storage["dexes"]):
        asset_ids = tuple(int(i) for i in dex["assetIds"])
        if len(asset_ids) != len(dex["liquidityBalance"]):
            raise MalformedDexError(chain, dex_index, len(asset_ids), len(dex["liquidityBalance"]))
        balances = []
        for asset_id, raw in zip(asset_ids, dex["liquidityBalance"]):
            # dangling ids are left for the ledger to reject; fall back to pool decimals
            decimals = assets[asset_id]["decimals"] if asset_id < len(assets) else POOL_DECIMALS
            balances.append(from_wei(raw, decimals))
        dexes.append(DexRecord(asset_ids=asset_ids, liquidity_balance=tuple(balances)))

    return ChainSnapshot(
        assets=tuple(decode_asset(a) for a in assets),
        dexes=tuple(dexes),
        lp_deduct=from_wei(storage["lpDeduct"]),
        chain=chain,
    )


def read_chain_snapshot(web3: Web3, reader_address: str, chain: str, block: Optional[int] = None) -> ChainSnapshot:
    """
    Read one chain's MUX pool state.

    Args:
        web3: Web3 instance
        reader_address: Reader contract address on this chain
        chain: Chain name (carried into the snapshot for error messages)
        block: Block number (None = latest)

    Returns:
        ChainSnapshot with decimal-converted assets, dexes and lpDeduct
    """
    reader_address = Web3.to_checksum_address(reader_address)
    reader = web3.eth.contract(address=reader_address, abi=READER_ABI)
    call_kwargs = {'block_identifier': block} if block is not None else {}

    try:
        raw = _safe_call(lambda: reader.functions.getChainStorage().call(**call_kwargs))
    except Exception as e:
        raise ChainReadError(chain, f"getChainStorage failed on {reader_address}: {e}") from e

    storage = _named(CHAIN_STORAGE_COMPONENTS, raw)
    snapshot = decode_chain_storage(storage, chain=chain)
    enabled = sum(1 for a in snapshot.assets if a.is_enabled)
    print(f"[reader] {chain}: {len(snapshot.assets)} assets ({enabled} enabled), "
          f"{len(snapshot.dexes)} dexes, lpDeduct={snapshot.lp_deduct:f}")
    return snapshot
