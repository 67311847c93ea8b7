"""
TradeCoordinator: the single entry point for trading on behalf of a fund.

Flow of ``submit``:
    1. resolve the exchange registration at ``request.exchange_index``
    2. pick the adapter by the protocol tagged to the registration's adapter
    3. build the uniform call (unsupported intents are rejected here)
    4. run the validation pipeline
    5. only on success, send ``callOnExchange`` through the contract client

Validation and submission are not atomic. Two concurrent submits against the
same fund may both pass validation on the same pre-state; the ledger then
rejects whichever write lands second. Callers that need stronger ordering
serialize submits per fund.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from fundtrade.adapters import ExchangeAdapter, ExchangeProtocol, adapter_for
from fundtrade.chain import abi
from fundtrade.chain.context import FundContext
from fundtrade.chain.state_reader import StateReader
from fundtrade.core.errors import (
    ExchangeAdapterNotRegisteredError,
    TradeValidationError,
    ValidationOutcome,
)
from fundtrade.core.types import CooldownState, OpenMakeOrder, TradeRequest, UniformCallArgs
from fundtrade.core.utils import checksum
from fundtrade.execution.order_ledger import OrderLedger
from fundtrade.infra.contracts import ContractClient, TransactionHandle
from fundtrade.monitoring.metrics import TradeMetrics
from fundtrade.risk.policy_gateway import PolicyGateway
from fundtrade.risk.validation import ValidationPipeline

log = logging.getLogger("fundtrade")


@dataclass
class SubmitResult:
    """Result of a submission attempt."""
    success: bool
    handle: Optional[TransactionHandle] = None
    error: Optional[TradeValidationError] = None
    call: Optional[UniformCallArgs] = None
    outcome: ValidationOutcome = field(default_factory=ValidationOutcome.success)

    @property
    def tx_hash(self) -> Optional[str]:
        return self.handle.tx_hash if self.handle else None

    def unwrap(self) -> TransactionHandle:
        """The transaction handle, or the validation error raised."""
        if self.error is not None:
            raise self.error
        return self.handle


@dataclass
class TradeCoordinatorConfig:
    # adapter address (lowercase) -> protocol
    protocols: Dict[str, ExchangeProtocol] = field(default_factory=dict)
    log_event_callback: Optional[Callable[..., None]] = None


class TradeCoordinator:
    def __init__(
        self,
        trading: str,
        reader: StateReader,
        contracts: ContractClient,
        config: Optional[TradeCoordinatorConfig] = None,
        pipeline: Optional[ValidationPipeline] = None,
        ledger: Optional[OrderLedger] = None,
        metrics: Optional[TradeMetrics] = None,
    ) -> None:
        """
        Args:
            trading: Address of the fund's trading module
            reader: Chain state reader
            contracts: Contract call surface used for the final write
            config: Protocol tag table and logging hook
            pipeline: Validation pipeline (built from ``reader`` when omitted)
            ledger: Order ledger (built from ``reader`` when omitted)
            metrics: Prometheus metrics
        """
        self.trading = checksum(trading)
        self.reader = reader
        self.contracts = contracts
        self.config = config or TradeCoordinatorConfig()
        self._log_event = self.config.log_event_callback or self._default_log
        self.pipeline = pipeline or ValidationPipeline(
            reader, PolicyGateway(contracts, self._log_event), self._log_event
        )
        self.ledger = ledger or OrderLedger(reader, self._log_event)
        self.metrics = metrics
        self._protocols = {
            k.lower(): v if isinstance(v, ExchangeProtocol) else ExchangeProtocol(v)
            for k, v in self.config.protocols.items()
        }
        self._contexts: Dict[str, FundContext] = {}

    def _default_log(self, event: str, **kwargs: Any) -> None:
        payload = {"event": event, "trading": self.trading, **kwargs}
        log.info(json.dumps(payload, default=str))

    async def context_for(self, fund: Optional[str] = None) -> FundContext:
        """Context of ``fund`` (a trading module address), resolved once per fund."""
        trading = checksum(fund) if fund else self.trading
        key = trading.lower()
        if key not in self._contexts:
            self._contexts[key] = await FundContext.resolve(self.reader, trading)
        return self._contexts[key]

    def protocol_of(self, adapter: str) -> Optional[ExchangeProtocol]:
        return self._protocols.get(adapter.lower())

    # ========== Trading ==========

    async def validate(
        self, sender: str, request: TradeRequest
    ) -> Tuple[ValidationOutcome, Optional[UniformCallArgs]]:
        """Dry run of ``submit``: the outcome and the call that would be sent."""
        outcome, call, _ = await self._prepare(sender, request)
        return outcome, call

    async def submit(self, sender: str, request: TradeRequest) -> SubmitResult:
        sender = checksum(sender)
        self._log_event(
            "trade_intent",
            sender=sender,
            kind=request.kind.value,
            exchange_index=request.exchange_index,
            maker_asset=request.maker_asset,
            taker_asset=request.taker_asset,
            maker_quantity=request.maker_quantity,
            taker_quantity=request.taker_quantity,
            order_id=request.order_id,
        )
        outcome, call, adapter = await self._prepare(sender, request)
        if not outcome.ok:
            return self._rejected(outcome, call)

        context = await self.context_for()
        handle = await self.contracts.write(
            context.trading, abi.TRADING_CALL_ON_EXCHANGE, call.to_abi_args(), sender
        )
        if self.metrics:
            self.metrics.trades_submitted.labels(protocol=adapter.protocol.value, kind=request.kind.value).inc()
        self._log_event(
            "trade_submitted",
            protocol=adapter.protocol.value,
            kind=request.kind.value,
            selector=call.selector_hex,
            tx_hash=handle.tx_hash,
        )
        return SubmitResult(success=True, handle=handle, call=call, outcome=outcome)

    async def _prepare(
        self, sender: str, request: TradeRequest
    ) -> Tuple[ValidationOutcome, Optional[UniformCallArgs], Optional[ExchangeAdapter]]:
        start = time.perf_counter()
        try:
            context = await self.context_for()
            try:
                adapter = await self._adapter_for(context, request.exchange_index)
                call = adapter.build_call(request)
            except TradeValidationError as err:
                return ValidationOutcome.failure(err), None, None
            outcome = await self.pipeline.run(sender, request, adapter, call, context, adapter.registration)
            return outcome, call, adapter
        finally:
            if self.metrics:
                self.metrics.validation_latency_ms.observe((time.perf_counter() - start) * 1000)

    async def _adapter_for(self, context: FundContext, index: int) -> ExchangeAdapter:
        registration = await self.pipeline.resolve_exchange(context, index)
        protocol = self.protocol_of(registration.adapter)
        if protocol is None:
            raise ExchangeAdapterNotRegisteredError(registration.adapter)
        return adapter_for(protocol, registration, context.trading)

    def _rejected(self, outcome: ValidationOutcome, call: Optional[UniformCallArgs]) -> SubmitResult:
        err = outcome.error
        if self.metrics:
            self.metrics.trades_rejected.labels(reason=err.code).inc()
        self._log_event("trade_rejected", **err.to_dict())
        return SubmitResult(success=False, error=err, call=call, outcome=outcome)

    # ========== Fund administration ==========

    async def add_exchange(self, sender: str, exchange: str, adapter: str) -> SubmitResult:
        """Register a new exchange/adapter pair; its index is the next free one."""
        context = await self.context_for()
        outcome = await self.pipeline.validate_add_exchange(sender, context, exchange, adapter)
        if not outcome.ok:
            return self._rejected(outcome, None)
        handle = await self.contracts.write(
            context.trading, abi.TRADING_ADD_EXCHANGE, [checksum(exchange), checksum(adapter)], sender
        )
        self._log_event("exchange_added", exchange=checksum(exchange), adapter=checksum(adapter), tx_hash=handle.tx_hash)
        return SubmitResult(success=True, handle=handle, outcome=outcome)

    async def return_batch_to_vault(self, sender: str, assets: Sequence[str]) -> SubmitResult:
        """Move assets held by the trading module back into the vault."""
        context = await self.context_for()
        outcome = await self.pipeline.validate_return_to_vault(sender, context)
        if not outcome.ok:
            return self._rejected(outcome, None)
        assets = [checksum(a) for a in assets]
        handle = await self.contracts.write(context.trading, abi.TRADING_RETURN_BATCH_TO_VAULT, [assets], sender)
        self._log_event("returned_to_vault", assets=assets, tx_hash=handle.tx_hash)
        return SubmitResult(success=True, handle=handle, outcome=outcome)

    # ========== Orders ==========

    async def list_open_orders(self, fund: Optional[str] = None) -> List[OpenMakeOrder]:
        return await self.ledger.list_open_orders(await self.context_for(fund))

    async def get_cooldown(self, fund: Optional[str], asset: str) -> Optional[int]:
        """Cooldown end timestamp for ``asset``, or None when no cooldown is set."""
        state: CooldownState = await self.ledger.get_cooldown(await self.context_for(fund), asset)
        return state.until if state.is_set else None
