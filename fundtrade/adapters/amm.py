"""
Take-only swap venues: Uniswap pools and the Kyber network.

A swap fills immediately against liquidity, so there is nothing to make or
cancel. The maker quantity is the minimum the fund accepts in return and the
whole taker quantity is spent.
"""

from __future__ import annotations

from typing import FrozenSet

from fundtrade.adapters.base import ExchangeAdapter, ExchangeProtocol
from fundtrade.core.types import OrderKind, TradeRequest, UniformCallArgs
from fundtrade.core.utils import checksum


class SwapAdapter(ExchangeAdapter):
    supported: FrozenSet[OrderKind] = frozenset({OrderKind.TAKE})

    def build_take_call(self, request: TradeRequest) -> UniformCallArgs:
        if request.fill_quantity is not None and request.fill_quantity != request.taker_quantity:
            raise ValueError(
                f"{self.protocol.value} swaps fill the full taker quantity "
                f"({request.fill_quantity} != {request.taker_quantity})"
            )
        return UniformCallArgs(
            exchange_index=self.exchange_index,
            method_signature=self.method_signature(OrderKind.TAKE),
            order_addresses=(
                self.exchange,
                self.trading,
                checksum(request.maker_asset),
                checksum(request.taker_asset),
            ),
            order_values=(request.maker_quantity, request.taker_quantity, 0, 0, 0, 0, request.taker_quantity),
        )


class UniswapAdapter(SwapAdapter):
    protocol = ExchangeProtocol.UNISWAP


class KyberNetworkAdapter(SwapAdapter):
    protocol = ExchangeProtocol.KYBER_NETWORK
