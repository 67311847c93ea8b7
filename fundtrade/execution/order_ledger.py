"""
OrderLedger: read projections of a fund's make orders and cooldowns.

The on-chain slots are keyed by (exchange, sell asset), so the open orders
of a fund are found by reading every slot of the registered exchange x
registered asset cross product. Nothing is cached between calls.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Callable, Dict, List, Optional

from fundtrade.adapters.zero_ex import decode_erc20_asset_data
from fundtrade.chain.context import FundContext
from fundtrade.chain.state_reader import StateReader
from fundtrade.core.types import CooldownState, OpenMakeOrder
from fundtrade.core.utils import checksum

log = logging.getLogger("fundtrade")


class OrderLedger:
    def __init__(
        self,
        reader: StateReader,
        log_event: Optional[Callable[..., None]] = None,
    ) -> None:
        self.reader = reader
        self._log_event = log_event or self._default_log

    def _default_log(self, event: str, **kwargs) -> None:
        log.info(json.dumps({"event": event, **kwargs}, default=str))

    async def list_open_orders(self, context: FundContext) -> List[OpenMakeOrder]:
        """Open make orders ordered by exchange index, then registry asset order."""
        exchanges, assets = await asyncio.gather(
            self.reader.get_exchange_info(context.trading),
            self.reader.get_registered_assets(context.registry),
        )
        # one exchange can be registered under several indices
        seen = set()
        unique_exchanges = []
        for registration in exchanges:
            key = registration.exchange.lower()
            if key not in seen:
                seen.add(key)
                unique_exchanges.append(registration.exchange)
        slots = await asyncio.gather(*(
            self.reader.get_open_make_order(context.trading, exchange, asset)
            for exchange in unique_exchanges
            for asset in assets
        ))
        orders = [slot for slot in slots if slot.is_open]
        self._log_event(
            "open_orders_listed",
            trading=context.trading,
            exchanges=len(unique_exchanges),
            assets=len(assets),
            open=len(orders),
        )
        return orders

    async def get_open_order(self, context: FundContext, exchange: str, asset: str) -> Optional[OpenMakeOrder]:
        slot = await self.reader.get_open_make_order(context.trading, exchange, asset)
        return slot if slot.is_open else None

    async def get_cooldown(self, context: FundContext, asset: str) -> CooldownState:
        return await self.reader.get_maker_asset_cooldown(context.trading, asset)

    async def get_cooldowns(self, context: FundContext, assets: Optional[List[str]] = None) -> List[CooldownState]:
        """Cooldown of every asset (all registered assets by default)."""
        if assets is None:
            assets = await self.reader.get_registered_assets(context.registry)
        return list(await asyncio.gather(*(self.get_cooldown(context, a) for a in assets)))

    async def expired_orders(self, context: FundContext) -> List[OpenMakeOrder]:
        """Open orders whose expiry has passed by the latest block."""
        orders, now = await asyncio.gather(self.list_open_orders(context), self.reader.latest_timestamp())
        return [o for o in orders if o.is_expired(now)]

    async def order_timing(self, context: FundContext) -> Dict[str, int]:
        lifespan, cooldown = await asyncio.gather(
            self.reader.get_order_lifespan(context.trading),
            self.reader.get_make_order_cooldown(context.trading),
        )
        return {"order_lifespan": lifespan, "make_order_cooldown": cooldown}

    async def order_details(self, context: FundContext, order: OpenMakeOrder) -> Optional[dict]:
        """Full details of an open order from the trading module's order list."""
        details = await self.reader.get_order_details(context.trading, order.order_index)
        if details is None:
            return None
        details["exchange"] = checksum(order.exchange)
        details["order_id"] = order.order_id
        details["expires_at"] = order.expires_at
        return details

    async def zero_ex_order(self, context: FundContext, order: OpenMakeOrder) -> Optional[dict]:
        """
        The 0x order behind an open make order on a 0x exchange, with the
        maker and taker assets read from its asset data. None when the
        trading module holds no 0x order under ``order.order_id``.
        """
        details = await self.reader.get_zero_ex_order(context.trading, order.order_id)
        if details is None:
            return None
        details["maker_asset"] = decode_erc20_asset_data(details["maker_asset_data"])
        details["taker_asset"] = decode_erc20_asset_data(details["taker_asset_data"])
        details["exchange"] = checksum(order.exchange)
        return details

    async def asset_exposure(self, context: FundContext, asset: str) -> Dict[str, int]:
        """How much of ``asset`` is tied up in open orders and held by exchanges."""
        being_traded, held = await asyncio.gather(
            self.reader.get_quantity_being_traded(context.trading, asset),
            self.reader.get_quantity_held_in_exchange(context.trading, asset),
        )
        return {"being_traded": being_traded, "held_in_exchange": held}
