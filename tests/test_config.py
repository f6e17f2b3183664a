"""
Tests for chains.yaml loading and environment overrides
"""

from decimal import Decimal

import pytest

from muxlp import config
from muxlp.config import (
    CHAIN_CFG,
    PRE_MINED_TOKEN_TOTAL_SUPPLY,
    _load_chain_cfg,
    enabled_chains,
    get_chain,
    get_pre_mined_supply,
    get_price_api,
    get_reader_address,
)
from muxlp.config.rpc_config import get_rpc_endpoint, get_rpc_url

ADDR = "0x" + "12" * 20


def test_shipped_config():
    assert PRE_MINED_TOKEN_TOTAL_SUPPLY == Decimal("1000000000000000000")
    assert enabled_chains() == ["arbitrum", "avalanche", "bsc", "fantom", "optimism"]
    assert get_chain("ARBITRUM")["chain_id"] == 42161
    assert CHAIN_CFG["price_api"]["url"].startswith("https://")


def test_unknown_chain():
    with pytest.raises(ValueError):
        get_chain("solana")
    with pytest.raises(ValueError):
        get_rpc_url("solana")


def test_rpc_override(monkeypatch):
    monkeypatch.delenv("MUXLP_RPC_BSC", raising=False)
    assert get_rpc_url("bsc") == "https://bsc-dataseed1.binance.org"
    monkeypatch.setenv("MUXLP_RPC_BSC", "http://localhost:8545")
    assert get_rpc_url("bsc") == "http://localhost:8545"
    assert get_rpc_endpoint("bsc") == ("http://localhost:8545", 56, True)


def test_reader_address_required(monkeypatch):
    monkeypatch.delenv("MUXLP_READER_FANTOM", raising=False)
    with pytest.raises(ValueError, match="MUXLP_READER_FANTOM"):
        get_reader_address("fantom")
    monkeypatch.setenv("MUXLP_READER_FANTOM", ADDR)
    assert get_reader_address("fantom") == ADDR


def test_pre_mined_override(monkeypatch):
    monkeypatch.setenv("MUXLP_PRE_MINED_SUPPLY", "2500.5")
    assert get_pre_mined_supply() == Decimal("2500.5")


def test_price_api_override(monkeypatch):
    monkeypatch.setenv("MUXLP_PRICE_API", "http://localhost/prices")
    api = get_price_api()
    assert api["url"] == "http://localhost/prices"
    assert api["timeout_sec"] == 10


def test_alternative_config_file(tmp_path, monkeypatch):
    path = tmp_path / "chains.yaml"
    path.write_text(
        "pre_mined_token_total_supply: 42\n"
        "chains:\n"
        "  arbitrum: {chain_id: 42161, rpc: 'http://a', reader: '" + ADDR + "'}\n"
        "  bsc: {chain_id: 56, rpc: 'http://b', enabled: false}\n"
    )
    monkeypatch.setenv("MUXLP_CONFIG", str(path))
    monkeypatch.delenv("MUXLP_PRE_MINED_SUPPLY", raising=False)
    monkeypatch.delenv("MUXLP_READER_ARBITRUM", raising=False)
    monkeypatch.delenv("MUXLP_PRICE_API", raising=False)
    cfg = _load_chain_cfg()

    assert enabled_chains(cfg) == ["arbitrum"]
    assert get_pre_mined_supply(cfg) == Decimal("42")
    assert get_reader_address("arbitrum", cfg) == ADDR
    assert get_rpc_url("bsc", cfg) == "http://b"
    with pytest.raises(ValueError):
        get_price_api(cfg)


def test_config_module_is_package():
    assert config.DEFAULT_CONFIG_PATH.name == "chains.yaml"
    assert config.DEFAULT_CONFIG_PATH.exists()
