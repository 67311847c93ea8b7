"""
ExchangeAdapter: protocol-specific packing of trade intents into the uniform
``callOnExchange`` slots.

Slot layout shared by every protocol:

    order_addresses  [0] maker        [1] taker         [2] maker asset   [3] taker asset
                     [4] fee recipient [5] sender        [6] maker fee asset [7] taker fee asset
    order_values     [0] maker qty    [1] taker qty     [2] maker fee     [3] taker fee
                     [4] expiration   [5] salt          [6] fill taker qty [7] unused
    order_data       [0] maker asset data [1] taker asset data
                     [2] maker fee asset data [3] taker fee asset data

Adapters only pack and unpack. Authorization and risk checks belong to the
validation pipeline, which runs the checks an adapter declares for an intent.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, List, Tuple

from fundtrade.chain.abi import CANCEL_ORDER_SIGNATURE, MAKE_ORDER_SIGNATURE, TAKE_ORDER_SIGNATURE
from fundtrade.core.errors import ProtocolNotSupportedError
from fundtrade.core.types import (
    DecodedOrder,
    ExchangeRegistration,
    OrderKind,
    TradeRequest,
    UniformCallArgs,
)
from fundtrade.core.utils import ZERO_ADDRESS, bytes32_to_int, checksum


class ExchangeProtocol(Enum):
    OASIS_DEX = "OasisDex"
    ZERO_EX_V2 = "ZeroExV2"
    ZERO_EX_V3 = "ZeroExV3"
    UNISWAP = "Uniswap"
    KYBER_NETWORK = "KyberNetwork"
    MELON_ENGINE = "MelonEngine"


class CheckId(Enum):
    """Pre-flight checks. Values give the fixed evaluation order."""
    EXCHANGE_INDEX = 10
    ADAPTER_METHOD = 20
    ASSET_REGISTRATION = 30
    SENDER_IS_MANAGER = 40
    SENDER_IS_MANAGER_OR_CONTRACT = 41
    FUND_LIVENESS = 50
    SUFFICIENT_BALANCE = 60
    NO_OPEN_ORDER = 70
    COOLDOWN = 80
    POLICY = 90


METHOD_SIGNATURES: Dict[OrderKind, str] = {
    OrderKind.MAKE: MAKE_ORDER_SIGNATURE,
    OrderKind.TAKE: TAKE_ORDER_SIGNATURE,
    OrderKind.CANCEL: CANCEL_ORDER_SIGNATURE,
}

DEFAULT_CHECKS: Dict[OrderKind, Tuple[CheckId, ...]] = {
    OrderKind.MAKE: (
        CheckId.EXCHANGE_INDEX,
        CheckId.ADAPTER_METHOD,
        CheckId.ASSET_REGISTRATION,
        CheckId.SENDER_IS_MANAGER,
        CheckId.FUND_LIVENESS,
        CheckId.SUFFICIENT_BALANCE,
        CheckId.NO_OPEN_ORDER,
        CheckId.COOLDOWN,
        CheckId.POLICY,
    ),
    OrderKind.TAKE: (
        CheckId.EXCHANGE_INDEX,
        CheckId.ADAPTER_METHOD,
        CheckId.ASSET_REGISTRATION,
        CheckId.SENDER_IS_MANAGER,
        CheckId.SUFFICIENT_BALANCE,
        CheckId.POLICY,
    ),
    OrderKind.CANCEL: (
        CheckId.EXCHANGE_INDEX,
        CheckId.ADAPTER_METHOD,
        CheckId.SENDER_IS_MANAGER,
        CheckId.POLICY,
    ),
}


class ExchangeAdapter:
    """
    Base for all protocol variants.

    Subclasses set ``protocol`` and ``supported`` and override the builders
    for the intents they support; anything else is rejected with
    ProtocolNotSupportedError before any chain state is read.
    """

    protocol: ExchangeProtocol
    supported: FrozenSet[OrderKind] = frozenset()
    checks: Dict[OrderKind, Tuple[CheckId, ...]] = DEFAULT_CHECKS

    def __init__(self, registration: ExchangeRegistration, trading: str) -> None:
        self.registration = registration
        self.trading = checksum(trading)

    @property
    def exchange_index(self) -> int:
        return self.registration.index

    @property
    def exchange(self) -> str:
        return self.registration.exchange

    def supports(self, kind: OrderKind) -> bool:
        return kind in self.supported

    def _require(self, kind: OrderKind) -> None:
        if not self.supports(kind):
            raise ProtocolNotSupportedError(self.protocol.value, kind.value)

    def method_signature(self, kind: OrderKind) -> str:
        self._require(kind)
        return METHOD_SIGNATURES[kind]

    def required_checks(self, kind: OrderKind) -> List[CheckId]:
        self._require(kind)
        return sorted(self.checks[kind], key=lambda c: c.value)

    def build_call(self, request: TradeRequest) -> UniformCallArgs:
        self._require(request.kind)
        if request.exchange_index != self.exchange_index:
            raise ValueError(
                f"request targets exchange {request.exchange_index}, adapter is bound to {self.exchange_index}"
            )
        if request.kind is OrderKind.MAKE:
            return self.build_make_call(request)
        if request.kind is OrderKind.TAKE:
            return self.build_take_call(request)
        return self.build_cancel_call(request)

    def build_make_call(self, request: TradeRequest) -> UniformCallArgs:
        raise ProtocolNotSupportedError(self.protocol.value, OrderKind.MAKE.value)

    def build_take_call(self, request: TradeRequest) -> UniformCallArgs:
        raise ProtocolNotSupportedError(self.protocol.value, OrderKind.TAKE.value)

    def build_cancel_call(self, request: TradeRequest) -> UniformCallArgs:
        raise ProtocolNotSupportedError(self.protocol.value, OrderKind.CANCEL.value)

    def decode(self, call: UniformCallArgs) -> DecodedOrder:
        """Read the maker/taker legs back out of the uniform slots."""
        order_id = bytes32_to_int(call.identifier)
        return DecodedOrder(
            maker_asset=checksum(call.order_addresses[2]),
            taker_asset=checksum(call.order_addresses[3]),
            maker_quantity=call.order_values[0],
            taker_quantity=call.order_values[1],
            order_id=order_id or None,
            fill_quantity=call.order_values[6] or None,
        )

    @staticmethod
    def _require_order_id(request: TradeRequest) -> int:
        if request.order_id is None:
            raise ValueError(f"{request.kind.value} request needs an order_id")
        return request.order_id

    def _counterparty(self, request: TradeRequest) -> str:
        return checksum(request.counterparty) if request.counterparty else ZERO_ADDRESS

    def __repr__(self) -> str:
        return f"{type(self).__name__}(index={self.exchange_index}, exchange={self.exchange})"


def fill_quantity(request: TradeRequest) -> int:
    return request.fill_quantity if request.fill_quantity is not None else request.taker_quantity
