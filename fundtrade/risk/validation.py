"""
ValidationPipeline: pre-flight checks for one trade, in a fixed order.

Checks run strictly in ``CheckId`` order and stop at the first failure.
Only the checks the adapter declares for the intent are evaluated.
Validation errors are returned as a ValidationOutcome; infrastructure
errors raised by a read propagate and abort the pass.

Independent reads inside one check (maker and taker registration, manager
and shutdown flag, the two policy phases) are issued concurrently. Reads
belonging to different checks never are, so a failed earlier check
guarantees the later ones issued no reads at all.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Iterable, Optional

from fundtrade.adapters.base import CheckId, ExchangeAdapter
from fundtrade.chain.context import FundContext
from fundtrade.chain.state_reader import StateReader
from fundtrade.core.errors import (
    AdapterIsAlreadyAddedError,
    AdapterMethodNotAllowedError,
    AssetAlreadyHasOpenMakeOrderError,
    AssetNotRegisteredError,
    CooldownNotReachedError,
    ExchangeAdapterNotRegisteredError,
    ExchangeAndAdapterMismatchError,
    FundIsShutDownError,
    InsufficientBalanceError,
    InvalidExchangeIndexError,
    PolicyValidationFailedError,
    SenderIsNotFundManagerError,
    SenderIsNotManagerOrContractError,
    TradeValidationError,
    ValidationOutcome,
)
from fundtrade.core.types import ExchangeRegistration, TradeRequest, UniformCallArgs
from fundtrade.core.utils import checksum, same_address
from fundtrade.risk.policy_gateway import PolicyArgs, PolicyGateway

log = logging.getLogger("fundtrade")


@dataclass
class ValidationPass:
    """Inputs of one pass plus the chain clock, read at most once."""
    sender: str
    context: FundContext
    request: Optional[TradeRequest] = None
    adapter: Optional[ExchangeAdapter] = None
    call: Optional[UniformCallArgs] = None
    registration: Optional[ExchangeRegistration] = None
    _now: Optional[int] = field(default=None, repr=False)


class ValidationPipeline:
    def __init__(
        self,
        reader: StateReader,
        policies: PolicyGateway,
        log_event: Optional[Callable[..., None]] = None,
    ) -> None:
        self.reader = reader
        self.policies = policies
        self._log_event = log_event or self._default_log
        self._checks: Dict[CheckId, Callable[[ValidationPass], Awaitable[None]]] = {
            CheckId.EXCHANGE_INDEX: self._check_exchange_index,
            CheckId.ADAPTER_METHOD: self._check_adapter_method,
            CheckId.ASSET_REGISTRATION: self._check_asset_registration,
            CheckId.SENDER_IS_MANAGER: self._check_sender_is_manager,
            CheckId.SENDER_IS_MANAGER_OR_CONTRACT: self._check_sender_is_manager_or_contract,
            CheckId.FUND_LIVENESS: self._check_fund_liveness,
            CheckId.SUFFICIENT_BALANCE: self._check_sufficient_balance,
            CheckId.NO_OPEN_ORDER: self._check_no_open_order,
            CheckId.COOLDOWN: self._check_cooldown,
            CheckId.POLICY: self._check_policy,
        }

    def _default_log(self, event: str, **kwargs) -> None:
        log.info(json.dumps({"event": event, **kwargs}, default=str))

    # ---- entry points

    async def resolve_exchange(self, context: FundContext, index: int) -> ExchangeRegistration:
        """Registration at ``index``; raises InvalidExchangeIndexError when none exists."""
        registration = await self.reader.get_exchange(context.trading, index)
        if registration is None:
            raise InvalidExchangeIndexError(index)
        return registration

    async def run(
        self,
        sender: str,
        request: TradeRequest,
        adapter: ExchangeAdapter,
        call: UniformCallArgs,
        context: FundContext,
        registration: Optional[ExchangeRegistration] = None,
    ) -> ValidationOutcome:
        state = ValidationPass(
            sender=checksum(sender),
            context=context,
            request=request,
            adapter=adapter,
            call=call,
            registration=registration,
        )
        return await self.run_checks(adapter.required_checks(request.kind), state)

    async def validate_add_exchange(
        self, sender: str, context: FundContext, exchange: str, adapter: str
    ) -> ValidationOutcome:
        """Checks for registering a new exchange/adapter pair with the fund."""
        state = ValidationPass(sender=checksum(sender), context=context)
        outcome = await self.run_checks([CheckId.SENDER_IS_MANAGER], state)
        if not outcome.ok:
            return outcome
        try:
            await self._check_new_adapter(context, checksum(exchange), checksum(adapter))
        except TradeValidationError as err:
            self._log_event("validation_failed", check="NEW_ADAPTER", **err.to_dict())
            return ValidationOutcome.failure(err)
        return outcome

    async def validate_return_to_vault(self, sender: str, context: FundContext) -> ValidationOutcome:
        state = ValidationPass(sender=checksum(sender), context=context)
        return await self.run_checks([CheckId.SENDER_IS_MANAGER_OR_CONTRACT], state)

    async def run_checks(self, checks: Iterable[CheckId], state: ValidationPass) -> ValidationOutcome:
        for check in sorted(set(checks), key=lambda c: c.value):
            try:
                await self._checks[check](state)
            except TradeValidationError as err:
                self._log_event("validation_failed", check=check.name, **err.to_dict())
                return ValidationOutcome.failure(err)
        return ValidationOutcome.success()

    # ---- helpers

    async def _now(self, state: ValidationPass) -> int:
        if state._now is None:
            state._now = await self.reader.latest_timestamp()
        return state._now

    # ---- checks

    async def _check_exchange_index(self, state: ValidationPass) -> None:
        index = state.request.exchange_index
        if state.registration is None or state.registration.index != index:
            state.registration = await self.resolve_exchange(state.context, index)
        bound = state.adapter.registration
        if not (
            same_address(bound.exchange, state.registration.exchange)
            and same_address(bound.adapter, state.registration.adapter)
        ):
            raise ExchangeAndAdapterMismatchError(state.registration.exchange, bound.adapter)

    async def _check_adapter_method(self, state: ValidationPass) -> None:
        adapter = state.adapter.registration.adapter
        allowed = await self.reader.is_adapter_method_allowed(state.context.registry, adapter, state.call.selector)
        if not allowed:
            raise AdapterMethodNotAllowedError(adapter, state.call.selector_hex)

    async def _check_asset_registration(self, state: ValidationPass) -> None:
        registry = state.context.registry
        maker, taker = state.request.maker_asset, state.request.taker_asset
        maker_ok, taker_ok = await asyncio.gather(
            self.reader.is_asset_registered(registry, maker),
            self.reader.is_asset_registered(registry, taker),
        )
        if not maker_ok:
            raise AssetNotRegisteredError(checksum(maker))
        if not taker_ok:
            raise AssetNotRegisteredError(checksum(taker))

    async def _check_sender_is_manager(self, state: ValidationPass) -> None:
        manager = await self.reader.get_manager(state.context.hub)
        if not same_address(state.sender, manager):
            raise SenderIsNotFundManagerError(state.sender, manager)

    async def _check_sender_is_manager_or_contract(self, state: ValidationPass) -> None:
        if same_address(state.sender, state.context.trading):
            return
        manager, shut_down = await asyncio.gather(
            self.reader.get_manager(state.context.hub),
            self.reader.is_shut_down(state.context.hub),
        )
        if not (same_address(state.sender, manager) or shut_down):
            raise SenderIsNotManagerOrContractError(state.sender)

    async def _check_fund_liveness(self, state: ValidationPass) -> None:
        if await self.reader.is_shut_down(state.context.hub):
            raise FundIsShutDownError(state.context.hub)

    async def _check_sufficient_balance(self, state: ValidationPass) -> None:
        asset = checksum(state.request.offered_asset)
        requested = state.request.offered_quantity
        actual = await self.reader.balance_of(asset, state.context.vault)
        if actual < requested:
            raise InsufficientBalanceError(asset, requested, actual)

    async def _check_no_open_order(self, state: ValidationPass) -> None:
        exchange = state.adapter.exchange
        order = await self.reader.get_open_make_order(
            state.context.trading, exchange, state.request.maker_asset
        )
        if not order.is_open:
            return
        if order.is_expired(await self._now(state)):
            return
        raise AssetAlreadyHasOpenMakeOrderError(exchange, order.sell_asset, order.order_id, order.expires_at)

    async def _check_cooldown(self, state: ValidationPass) -> None:
        cooldown = await self.reader.get_maker_asset_cooldown(state.context.trading, state.request.maker_asset)
        if not cooldown.is_set:
            return
        now = await self._now(state)
        if cooldown.active(now):
            raise CooldownNotReachedError(cooldown.asset, cooldown.until, now)

    async def _check_new_adapter(self, context: FundContext, exchange: str, adapter: str) -> None:
        if await self.reader.adapter_is_added(context.trading, adapter):
            raise AdapterIsAlreadyAddedError(adapter)
        if not await self.reader.is_exchange_adapter_registered(context.registry, adapter):
            raise ExchangeAdapterNotRegisteredError(adapter)
        info = await self.reader.get_exchange_information(context.registry, adapter)
        if not same_address(info["exchange"], exchange):
            raise ExchangeAndAdapterMismatchError(exchange, adapter)

    async def _check_policy(self, state: ValidationPass) -> None:
        args = PolicyArgs.from_call(state.call, state.adapter.exchange)
        verdicts = await self.policies.evaluate_both(state.context.policy_manager, args)
        for verdict in verdicts:
            if not verdict.passed:
                raise PolicyValidationFailedError(args.selector_hex, verdict.phase.value, verdict.reason)
