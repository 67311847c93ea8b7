"""Melon engine: sells MLN for WETH at the engine price. Take only."""

from __future__ import annotations

from fundtrade.adapters.amm import SwapAdapter
from fundtrade.adapters.base import ExchangeProtocol
from fundtrade.core.types import TradeRequest, UniformCallArgs


class MelonEngineAdapter(SwapAdapter):
    protocol = ExchangeProtocol.MELON_ENGINE

    def build_take_call(self, request: TradeRequest) -> UniformCallArgs:
        if request.maker_asset.lower() == request.taker_asset.lower():
            raise ValueError("engine take needs distinct maker and taker assets")
        return super().build_take_call(request)
