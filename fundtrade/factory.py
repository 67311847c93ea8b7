"""
Wiring: build a TradeCoordinator and its collaborators from Settings.

Usage:
    cfg = Settings.load()
    coordinator = await create_coordinator(cfg)
    result = await coordinator.submit(cfg.resolve_account(), request)
"""

from __future__ import annotations

import logging
from typing import Optional

from fundtrade.adapters import ExchangeProtocol
from fundtrade.chain.state_reader import StateReader
from fundtrade.config.config import Settings
from fundtrade.config.config_validator import validate_and_log
from fundtrade.execution.trade_coordinator import TradeCoordinator, TradeCoordinatorConfig
from fundtrade.infra.contracts import ContractClient
from fundtrade.infra.logging_cfg import build_logger
from fundtrade.infra.rpc import BlockTag, RpcClient
from fundtrade.monitoring.metrics import TradeMetrics

log = logging.getLogger("fundtrade")


def block_tag_of(cfg: Settings) -> BlockTag:
    return int(cfg.block_tag) if cfg.block_tag.isdigit() else cfg.block_tag


async def create_coordinator(
    cfg: Settings,
    rpc: Optional[RpcClient] = None,
    metrics: Optional[TradeMetrics] = None,
) -> TradeCoordinator:
    """
    Create a coordinator bound to ``cfg.trading_address``.

    Configures the ``fundtrade`` logger from ``cfg.log_level``/``cfg.log_file``
    and, unless ``metrics`` is given, builds a TradeMetrics served on
    ``cfg.metrics_port`` (0 keeps the endpoint off). The fund context is
    resolved eagerly so a wrong trading address fails here rather than on
    the first trade.
    """
    build_logger("fundtrade", level=cfg.log_level, file_path=cfg.log_file)
    if not validate_and_log(cfg, log):
        raise RuntimeError("Invalid configuration, see CONFIG ERROR lines above")
    if metrics is None:
        metrics = TradeMetrics()
        if cfg.metrics_port:
            metrics.serve(cfg.metrics_port)
            log.info(f"Metrics served on :{cfg.metrics_port}")
    rpc = rpc or RpcClient(cfg.rpc_url, timeout=cfg.http_timeout)
    signers = [cfg.resolve_signer()] if cfg.private_key else []
    contracts = ContractClient(
        rpc,
        signers=signers,
        chain_id=cfg.chain_id,
        gas_multiplier=cfg.gas_multiplier,
        block=block_tag_of(cfg),
        on_rpc_error=metrics.record_rpc_error,
        receipt_timeout=cfg.receipt_timeout,
        receipt_poll_sec=cfg.receipt_poll_sec,
    )
    reader = StateReader(contracts)
    coordinator = TradeCoordinator(
        cfg.trading_address,
        reader,
        contracts,
        config=TradeCoordinatorConfig(
            protocols={adapter: ExchangeProtocol(tag) for adapter, tag in cfg.adapters.items()},
        ),
        metrics=metrics,
    )
    await coordinator.context_for()
    return coordinator
