"""OasisDex: on-chain order book, orders addressed by their integer offer id."""

from __future__ import annotations

from typing import Dict, FrozenSet, Tuple

from fundtrade.adapters.base import DEFAULT_CHECKS, CheckId, ExchangeAdapter, ExchangeProtocol, fill_quantity
from fundtrade.core.types import OrderKind, TradeRequest, UniformCallArgs
from fundtrade.core.utils import ZERO_ADDRESS, checksum, to_bytes32

# taking an offer on a shut down fund reverts inside the adapter as well
OASIS_CHECKS: Dict[OrderKind, Tuple[CheckId, ...]] = {
    **DEFAULT_CHECKS,
    OrderKind.TAKE: DEFAULT_CHECKS[OrderKind.TAKE] + (CheckId.FUND_LIVENESS,),
}


class OasisDexAdapter(ExchangeAdapter):
    protocol = ExchangeProtocol.OASIS_DEX
    supported: FrozenSet[OrderKind] = frozenset({OrderKind.MAKE, OrderKind.TAKE, OrderKind.CANCEL})
    checks = OASIS_CHECKS

    def build_make_call(self, request: TradeRequest) -> UniformCallArgs:
        return UniformCallArgs(
            exchange_index=self.exchange_index,
            method_signature=self.method_signature(OrderKind.MAKE),
            order_addresses=(
                self.trading,
                ZERO_ADDRESS,
                checksum(request.maker_asset),
                checksum(request.taker_asset),
            ),
            order_values=(request.maker_quantity, request.taker_quantity),
        )

    def build_take_call(self, request: TradeRequest) -> UniformCallArgs:
        order_id = self._require_order_id(request)
        return UniformCallArgs(
            exchange_index=self.exchange_index,
            method_signature=self.method_signature(OrderKind.TAKE),
            order_addresses=(
                self._counterparty(request),
                self.trading,
                checksum(request.maker_asset),
                checksum(request.taker_asset),
            ),
            order_values=(request.maker_quantity, request.taker_quantity, 0, 0, 0, 0, fill_quantity(request)),
            identifier=to_bytes32(order_id),
        )

    def build_cancel_call(self, request: TradeRequest) -> UniformCallArgs:
        order_id = self._require_order_id(request)
        return UniformCallArgs(
            exchange_index=self.exchange_index,
            method_signature=self.method_signature(OrderKind.CANCEL),
            order_addresses=(
                self.trading,
                ZERO_ADDRESS,
                checksum(request.maker_asset),
                checksum(request.taker_asset),
            ),
            identifier=to_bytes32(order_id),
        )
