"""Tests for Settings loading and ConfigValidator."""

import logging
from dataclasses import replace

import pytest

from fundtrade.config import ConfigValidator, Settings, parse_adapters, validate_and_log
from fundtrade.config.config_validator import ValidationSeverity

PRIVATE_KEY = "0x" + "11" * 32
TRADING = "0x" + "00" * 19 + "11"


@pytest.fixture
def env(monkeypatch):
    for key in ("FUND_PRIVATE_KEY", "FUND_SENDER_ADDRESS", "FUND_CHAIN_ID", "FUND_BLOCK_TAG",
                "FUND_GAS_MULTIPLIER", "FUND_HTTP_TIMEOUT", "FUND_METRICS_PORT"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("FUND_RPC_URL", "http://127.0.0.1:8545")
    monkeypatch.setenv("FUND_TRADING_ADDRESS", TRADING)
    monkeypatch.setenv("FUND_ADAPTERS", "OasisDex=0x" + "00" * 19 + "21, Uniswap=0x" + "00" * 19 + "22")
    return monkeypatch


def test_parse_adapters():
    table = parse_adapters("ZeroExV3=0xAAAA000000000000000000000000000000000001,")
    assert table == {"0xaaaa000000000000000000000000000000000001": "ZeroExV3"}
    assert parse_adapters(None) == {}


@pytest.mark.parametrize("raw", ["OasisDex", "Binance=0x" + "00" * 20])
def test_parse_adapters_rejects_bad_entries(raw):
    with pytest.raises(ValueError):
        parse_adapters(raw)


def test_load_defaults(env):
    cfg = Settings.load()
    assert cfg.trading_address == TRADING
    assert cfg.block_tag == "latest"
    assert cfg.gas_multiplier == 1.2
    assert cfg.chain_id is None
    assert set(cfg.adapters.values()) == {"OasisDex", "Uniswap"}


def test_load_rejects_bad_values(env):
    env.setenv("FUND_GAS_MULTIPLIER", "0.5")
    with pytest.raises(ValueError):
        Settings.load()
    env.setenv("FUND_GAS_MULTIPLIER", "1.1")
    env.setenv("FUND_BLOCK_TAG", "yesterday")
    with pytest.raises(ValueError):
        Settings.load()


def test_signer_from_private_key(env):
    env.setenv("FUND_PRIVATE_KEY", PRIVATE_KEY)
    cfg = Settings.load()
    signer = cfg.resolve_signer()
    assert cfg.resolve_account() == signer.address
    assert cfg.dump()["private_key"] == "***"


def test_missing_sender(env):
    cfg = Settings.load()
    with pytest.raises(RuntimeError):
        cfg.resolve_account()


class TestConfigValidator:
    def test_valid(self, env):
        env.setenv("FUND_PRIVATE_KEY", PRIVATE_KEY)
        result = ConfigValidator().validate(Settings.load())
        assert result.valid
        assert not result.has_errors()

    def test_missing_sender_is_error(self, env):
        result = ConfigValidator().validate(Settings.load())
        assert not result.valid
        assert [i.field for i in result.get_errors()] == ["sender_address"]

    def test_node_managed_sender_is_info(self, env):
        env.setenv("FUND_SENDER_ADDRESS", TRADING)
        result = ConfigValidator().validate(Settings.load())
        assert result.valid
        assert any(i.severity is ValidationSeverity.INFO for i in result.issues)

    def test_bad_address_and_range(self, env):
        env.setenv("FUND_SENDER_ADDRESS", TRADING)
        cfg = replace(Settings.load(), trading_address="0x1234", http_timeout=500.0)
        fields = {i.field for i in ConfigValidator().validate(cfg).get_errors()}
        assert fields == {"trading_address", "http_timeout"}

    def test_risky_settings_warn(self, env):
        env.setenv("FUND_SENDER_ADDRESS", TRADING)
        cfg = replace(Settings.load(), gas_multiplier=3.0, block_tag="pending", rpc_url="http://node.example")
        warnings = {i.field for i in ConfigValidator().validate(cfg).get_warnings()}
        assert warnings == {"gas_multiplier", "block_tag", "rpc_url"}

    def test_validate_and_log(self, env, caplog):
        cfg = Settings.load()
        logger = logging.getLogger("test_config")
        with caplog.at_level(logging.WARNING, logger="test_config"):
            assert validate_and_log(cfg, logger) is False
        assert any("CONFIG ERROR" in r.message for r in caplog.records)

    def test_metrics_port_range(self, env):
        env.setenv("FUND_SENDER_ADDRESS", TRADING)
        cfg = replace(Settings.load(), metrics_port=70000)
        errors = ConfigValidator().validate(cfg).get_errors()
        assert [i.field for i in errors] == ["metrics_port"]
        assert errors[0].render().startswith("CONFIG ERROR: 'metrics_port' = 70000.0 outside")
