"""
StateReader: read-only queries against a fund's on-chain records.

Every method is a single network round trip and nothing is cached;
callers that need a consistent view across several reads pin a block
number through ``block``.
"""

from __future__ import annotations

from typing import List, Optional

from fundtrade.chain import abi
from fundtrade.chain.context import FundRoutes
from fundtrade.core.errors import ContractRevertError
from fundtrade.core.types import CooldownState, ExchangeRegistration, OpenMakeOrder
from fundtrade.core.utils import checksum, is_zero_address, to_bytes32
from fundtrade.infra.contracts import ContractClient
from fundtrade.infra.rpc import BlockTag


class StateReader:
    def __init__(self, contracts: ContractClient, block: Optional[BlockTag] = None) -> None:
        self.contracts = contracts
        self.block = block

    async def _read(self, address: str, function, args=(), block: Optional[BlockTag] = None):
        return await self.contracts.read(address, function, args, block if block is not None else self.block)

    # ---- clock

    async def latest_timestamp(self, block: Optional[BlockTag] = None) -> int:
        """Timestamp of the block reads are judged against."""
        header = await self.contracts.rpc.get_block(block if block is not None else self.block)
        return int(header["timestamp"], 16)

    # ---- hub

    async def get_hub(self, trading: str, block: Optional[BlockTag] = None) -> str:
        return checksum(await self._read(trading, abi.TRADING_HUB, (), block))

    async def get_routes(self, spoke: str, block: Optional[BlockTag] = None) -> FundRoutes:
        return FundRoutes.from_tuple(await self._read(spoke, abi.TRADING_ROUTES, (), block))

    async def get_manager(self, hub: str, block: Optional[BlockTag] = None) -> str:
        return checksum(await self._read(hub, abi.HUB_MANAGER, (), block))

    async def is_shut_down(self, hub: str, block: Optional[BlockTag] = None) -> bool:
        return bool(await self._read(hub, abi.HUB_IS_SHUT_DOWN, (), block))

    async def get_fund_name(self, hub: str, block: Optional[BlockTag] = None) -> str:
        return await self._read(hub, abi.HUB_NAME, (), block)

    # ---- vault

    async def balance_of(self, asset: str, owner: str, block: Optional[BlockTag] = None) -> int:
        return int(await self._read(asset, abi.ERC20_BALANCE_OF, (checksum(owner),), block))

    # ---- registry

    async def is_asset_registered(self, registry: str, asset: str, block: Optional[BlockTag] = None) -> bool:
        return bool(await self._read(registry, abi.REGISTRY_ASSET_IS_REGISTERED, (checksum(asset),), block))

    async def get_registered_assets(self, registry: str, block: Optional[BlockTag] = None) -> List[str]:
        return [checksum(a) for a in await self._read(registry, abi.REGISTRY_GET_REGISTERED_ASSETS, (), block)]

    async def is_adapter_method_allowed(
        self, registry: str, adapter: str, selector: bytes, block: Optional[BlockTag] = None
    ) -> bool:
        return bool(await self._read(
            registry, abi.REGISTRY_ADAPTER_METHOD_IS_ALLOWED, (checksum(adapter), selector), block
        ))

    async def is_exchange_adapter_registered(
        self, registry: str, adapter: str, block: Optional[BlockTag] = None
    ) -> bool:
        return bool(await self._read(registry, abi.REGISTRY_EXCHANGE_ADAPTER_IS_REGISTERED, (checksum(adapter),), block))

    async def get_exchange_information(
        self, registry: str, adapter: str, block: Optional[BlockTag] = None
    ) -> dict:
        exists, exchange, takes_custody = await self._read(
            registry, abi.REGISTRY_EXCHANGE_INFORMATION, (checksum(adapter),), block
        )
        return {"exists": bool(exists), "exchange": checksum(exchange), "takes_custody": bool(takes_custody)}

    # ---- trading: exchanges

    async def get_exchange(
        self, trading: str, index: int, block: Optional[BlockTag] = None
    ) -> Optional[ExchangeRegistration]:
        """Registration at ``index``, or None when the index is out of range."""
        if index < 0:
            return None
        try:
            exchange, adapter, takes_custody = await self._read(trading, abi.TRADING_EXCHANGES, (index,), block)
        except ContractRevertError:
            return None
        if is_zero_address(exchange) and is_zero_address(adapter):
            return None
        return ExchangeRegistration(index, checksum(exchange), checksum(adapter), bool(takes_custody))

    async def get_exchange_info(self, trading: str, block: Optional[BlockTag] = None) -> List[ExchangeRegistration]:
        exchanges, adapters, custody = await self._read(trading, abi.TRADING_GET_EXCHANGE_INFO, (), block)
        return [
            ExchangeRegistration(i, checksum(exchanges[i]), checksum(adapters[i]), bool(custody[i]))
            for i in range(len(exchanges))
        ]

    async def adapter_is_added(self, trading: str, adapter: str, block: Optional[BlockTag] = None) -> bool:
        return bool(await self._read(trading, abi.TRADING_ADAPTER_IS_ADDED, (checksum(adapter),), block))

    # ---- trading: orders

    async def get_open_make_order(
        self, trading: str, exchange: str, asset: str, block: Optional[BlockTag] = None
    ) -> OpenMakeOrder:
        """Raw slot for ``(exchange, asset)``; a zero buy asset means the slot is empty."""
        order_id, expires_at, order_index, buy_asset, fee_asset = await self._read(
            trading, abi.TRADING_OPEN_MAKE_ORDERS, (checksum(exchange), checksum(asset)), block
        )
        return OpenMakeOrder(
            exchange=checksum(exchange),
            sell_asset=checksum(asset),
            buy_asset=checksum(buy_asset),
            order_id=int(order_id),
            expires_at=int(expires_at),
            order_index=int(order_index),
            fee_asset=checksum(fee_asset),
        )

    async def is_in_open_make_order(self, trading: str, asset: str, block: Optional[BlockTag] = None) -> bool:
        return bool(await self._read(trading, abi.TRADING_IS_IN_OPEN_MAKE_ORDER, (checksum(asset),), block))

    async def is_order_expired(
        self, trading: str, exchange: str, asset: str, block: Optional[BlockTag] = None
    ) -> bool:
        return bool(await self._read(
            trading, abi.TRADING_IS_ORDER_EXPIRED, (checksum(exchange), checksum(asset)), block
        ))

    async def get_order_lifespan(self, trading: str, block: Optional[BlockTag] = None) -> int:
        return int(await self._read(trading, abi.TRADING_ORDER_LIFESPAN, (), block))

    async def get_make_order_cooldown(self, trading: str, block: Optional[BlockTag] = None) -> int:
        return int(await self._read(trading, abi.TRADING_MAKE_ORDER_COOLDOWN, (), block))

    async def get_maker_asset_cooldown(
        self, trading: str, asset: str, block: Optional[BlockTag] = None
    ) -> CooldownState:
        until = int(await self._read(trading, abi.TRADING_MAKER_ASSET_COOLDOWN, (checksum(asset),), block))
        return CooldownState(asset=checksum(asset), until=until)

    async def get_order_details(self, trading: str, index: int, block: Optional[BlockTag] = None) -> Optional[dict]:
        try:
            maker_asset, taker_asset, maker_qty, taker_qty = await self._read(
                trading, abi.TRADING_GET_ORDER_DETAILS, (index,), block
            )
        except ContractRevertError:
            return None
        return {
            "maker_asset": checksum(maker_asset),
            "taker_asset": checksum(taker_asset),
            "maker_quantity": int(maker_qty),
            "taker_quantity": int(taker_qty),
        }

    async def get_zero_ex_order(self, trading: str, identifier, block: Optional[BlockTag] = None) -> Optional[dict]:
        """The 0x order stored under ``identifier`` (order hash), or None when none is stored."""
        (maker, taker, fee_recipient, sender, maker_qty, taker_qty, maker_fee, taker_fee,
         expiration, salt, maker_asset_data, taker_asset_data) = await self._read(
            trading, abi.TRADING_GET_ZERO_EX_ORDER_DETAILS, (to_bytes32(identifier),), block
        )
        if is_zero_address(maker):
            return None
        return {
            "maker": checksum(maker),
            "taker": checksum(taker),
            "fee_recipient": checksum(fee_recipient),
            "sender": checksum(sender),
            "maker_quantity": int(maker_qty),
            "taker_quantity": int(taker_qty),
            "maker_fee": int(maker_fee),
            "taker_fee": int(taker_fee),
            "expiration": int(expiration),
            "salt": int(salt),
            "maker_asset_data": bytes(maker_asset_data),
            "taker_asset_data": bytes(taker_asset_data),
        }

    # ---- trading: holdings

    async def get_quantity_being_traded(self, trading: str, asset: str, block: Optional[BlockTag] = None) -> int:
        """Quantity of ``asset`` committed to open make orders."""
        return int(await self._read(trading, abi.TRADING_QUANTITY_BEING_TRADED, (checksum(asset),), block))

    async def get_quantity_held_in_exchange(self, trading: str, asset: str, block: Optional[BlockTag] = None) -> int:
        """Quantity of ``asset`` in the custody of exchanges."""
        return int(await self._read(trading, abi.TRADING_QUANTITY_HELD_IN_EXCHANGE, (checksum(asset),), block))
