"""
Environment-driven configuration with validation.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from dotenv import load_dotenv

load_dotenv()

KNOWN_PROTOCOLS = ("OasisDex", "ZeroExV2", "ZeroExV3", "Uniswap", "KyberNetwork", "MelonEngine")


def parse_adapters(raw: Optional[str]) -> Dict[str, str]:
    """
    Parse ``Protocol=0xAdapter,Protocol=0xAdapter`` into ``{adapter_lower: protocol}``.

    Keyed by lower-cased adapter address so lookups ignore checksum casing.
    """
    table: Dict[str, str] = {}
    if not raw:
        return table
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        if "=" not in entry:
            raise ValueError(f"FUND_ADAPTERS entry '{entry}' must look like Protocol=0xAdapter")
        protocol, adapter = (part.strip() for part in entry.split("=", 1))
        if protocol not in KNOWN_PROTOCOLS:
            raise ValueError(f"FUND_ADAPTERS: unknown protocol '{protocol}'")
        table[adapter.lower()] = protocol
    return table


@dataclass(frozen=True)
class Settings:
    rpc_url: str
    trading_address: Optional[str]
    private_key: Optional[str]
    sender_address: Optional[str]
    chain_id: Optional[int]
    http_timeout: float
    block_tag: str
    gas_multiplier: float
    receipt_timeout: float
    receipt_poll_sec: float
    adapters: Dict[str, str] = field(default_factory=dict)
    log_level: str = "INFO"
    log_file: Optional[str] = "fundtrade.log"
    metrics_port: int = 0

    def dump(self) -> dict:
        """Return a dict of settings for sanity checks/logging, with secrets masked."""
        out = self.__dict__.copy()
        if out.get("private_key"):
            out["private_key"] = "***"
        return out

    @classmethod
    def load(cls) -> "Settings":
        def _int_env(key: str, default: Optional[int]) -> Optional[int]:
            raw = os.getenv(key)
            if raw is None or raw == "":
                return default
            return int(raw)

        def _float_env(key: str, default: float) -> float:
            raw = os.getenv(key)
            if raw is None or raw == "":
                return default
            return float(raw)

        cfg = cls(
            rpc_url=os.getenv("FUND_RPC_URL", "http://127.0.0.1:8545"),
            trading_address=os.getenv("FUND_TRADING_ADDRESS"),
            private_key=os.getenv("FUND_PRIVATE_KEY"),
            sender_address=os.getenv("FUND_SENDER_ADDRESS"),
            chain_id=_int_env("FUND_CHAIN_ID", None),
            http_timeout=_float_env("FUND_HTTP_TIMEOUT", 10.0),
            block_tag=os.getenv("FUND_BLOCK_TAG", "latest"),
            gas_multiplier=_float_env("FUND_GAS_MULTIPLIER", 1.2),
            receipt_timeout=_float_env("FUND_RECEIPT_TIMEOUT", 120.0),
            receipt_poll_sec=_float_env("FUND_RECEIPT_POLL_SEC", 1.0),
            adapters=parse_adapters(os.getenv("FUND_ADAPTERS")),
            log_level=os.getenv("FUND_LOG_LEVEL", "INFO").upper(),
            log_file=os.getenv("FUND_LOG_FILE", "fundtrade.log") or None,
            metrics_port=_int_env("FUND_METRICS_PORT", 0) or 0,
        )
        _sanity_check(cfg)
        cfg._validate()
        return cfg

    def resolve_account(self) -> str:
        if self.private_key:
            from eth_account import Account

            return Account.from_key(self.private_key).address
        if self.sender_address:
            return self.sender_address
        raise RuntimeError("Missing FUND_SENDER_ADDRESS or FUND_PRIVATE_KEY")

    def resolve_signer(self):
        from eth_account import Account

        if self.private_key:
            return Account.from_key(self.private_key)
        raise RuntimeError("Missing credentials: set FUND_PRIVATE_KEY")

    def _validate(self) -> None:
        if self.http_timeout <= 0:
            raise ValueError("FUND_HTTP_TIMEOUT must be > 0")
        if self.gas_multiplier < 1.0:
            raise ValueError("FUND_GAS_MULTIPLIER must be >= 1.0")
        if self.receipt_timeout <= 0 or self.receipt_poll_sec <= 0:
            raise ValueError("Receipt timeout and poll interval must be > 0")
        if self.block_tag not in {"latest", "pending", "safe", "finalized"} and not self.block_tag.isdigit():
            raise ValueError(f"FUND_BLOCK_TAG '{self.block_tag}' is not a block tag or number")
        if not self.adapters:
            logging.getLogger("fundtrade").warning(
                "WARNING: FUND_ADAPTERS not set. "
                "No exchange registration can be mapped to a protocol adapter."
            )


def _sanity_check(cfg: Settings) -> None:
    """
    Log critical settings once at startup so overrides are obvious.
    """
    logger = logging.getLogger("fundtrade")
    payload = {
        "event": "config_loaded",
        "rpc_url": cfg.rpc_url,
        "trading_address": cfg.trading_address,
        "block_tag": cfg.block_tag,
        "protocols": sorted(set(cfg.adapters.values())),
    }
    logger.info(json.dumps(payload))
