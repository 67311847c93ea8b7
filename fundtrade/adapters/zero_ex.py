"""
0x signed-order adapters (v2 and v3).

The fund makes by pre-signing an order through the adapter and takes by
filling a counterparty's signed order. Assets travel as 0x ``assetData``
(ERC20 proxy id followed by the ABI-encoded token address) in the data slots.
"""

from __future__ import annotations

from typing import FrozenSet, Tuple

from eth_abi import decode, encode

from fundtrade.adapters.base import ExchangeAdapter, ExchangeProtocol, fill_quantity
from fundtrade.core.types import DecodedOrder, OrderKind, SignedOrder, TradeRequest, UniformCallArgs
from fundtrade.core.utils import ZERO_ADDRESS, bytes32_to_int, checksum, is_zero_address, to_bytes32

ERC20_PROXY_ID = bytes.fromhex("f47261b0")


def encode_erc20_asset_data(asset: str) -> bytes:
    return ERC20_PROXY_ID + encode(["address"], [checksum(asset)])


def decode_erc20_asset_data(data: bytes) -> str:
    if len(data) < 36 or data[:4] != ERC20_PROXY_ID:
        raise ValueError(f"not ERC20 asset data: 0x{bytes(data).hex()}")
    (asset,) = decode(["address"], data[4:36])
    return checksum(asset)


class ZeroExV2Adapter(ExchangeAdapter):
    protocol = ExchangeProtocol.ZERO_EX_V2
    supported: FrozenSet[OrderKind] = frozenset({OrderKind.MAKE, OrderKind.TAKE, OrderKind.CANCEL})

    def _fee_slots(self, order: SignedOrder) -> Tuple[Tuple[str, ...], Tuple[bytes, ...]]:
        return (), ()

    def _order_call(self, kind: OrderKind, request: TradeRequest, maker: str, fill: int) -> UniformCallArgs:
        order = request.signed_order or SignedOrder()
        fee_addresses, fee_data = self._fee_slots(order)
        return UniformCallArgs(
            exchange_index=self.exchange_index,
            method_signature=self.method_signature(kind),
            order_addresses=(
                maker,
                checksum(order.taker),
                checksum(request.maker_asset),
                checksum(request.taker_asset),
                checksum(order.fee_recipient),
                checksum(order.sender),
            ) + fee_addresses,
            order_values=(
                request.maker_quantity,
                request.taker_quantity,
                order.maker_fee,
                order.taker_fee,
                order.expiration,
                order.salt,
                fill,
            ),
            order_data=(
                encode_erc20_asset_data(request.maker_asset),
                encode_erc20_asset_data(request.taker_asset),
            ) + fee_data,
            identifier=to_bytes32(request.order_id),
            signature=order.signature,
        )

    def build_make_call(self, request: TradeRequest) -> UniformCallArgs:
        return self._order_call(OrderKind.MAKE, request, self.trading, 0)

    def build_take_call(self, request: TradeRequest) -> UniformCallArgs:
        order = request.signed_order
        if order is None:
            raise ValueError("take on a signed-order exchange needs the counterparty's signed_order")
        maker = order.maker if not is_zero_address(order.maker) else request.counterparty
        return self._order_call(OrderKind.TAKE, request, checksum(maker), fill_quantity(request))

    def build_cancel_call(self, request: TradeRequest) -> UniformCallArgs:
        self._require_order_id(request)
        return UniformCallArgs(
            exchange_index=self.exchange_index,
            method_signature=self.method_signature(OrderKind.CANCEL),
            order_addresses=(
                self.trading,
                ZERO_ADDRESS,
                checksum(request.maker_asset),
                checksum(request.taker_asset),
            ),
            order_data=(
                encode_erc20_asset_data(request.maker_asset),
                encode_erc20_asset_data(request.taker_asset),
            ),
            identifier=to_bytes32(request.order_id),
        )

    def decode(self, call: UniformCallArgs) -> DecodedOrder:
        """Assets are read from the asset data, not the address slots."""
        maker_asset = decode_erc20_asset_data(call.order_data[0])
        taker_asset = decode_erc20_asset_data(call.order_data[1])
        return DecodedOrder(
            maker_asset=maker_asset,
            taker_asset=taker_asset,
            maker_quantity=call.order_values[0],
            taker_quantity=call.order_values[1],
            order_id=bytes32_to_int(call.identifier) or None,
            fill_quantity=call.order_values[6] or None,
            extra={
                "maker": checksum(call.order_addresses[0]),
                "fee_recipient": checksum(call.order_addresses[4]),
                "maker_fee": call.order_values[2],
                "taker_fee": call.order_values[3],
                "expiration": call.order_values[4],
                "salt": call.order_values[5],
            },
        )


class ZeroExV3Adapter(ZeroExV2Adapter):
    """v3 orders name their fee assets explicitly."""
    protocol = ExchangeProtocol.ZERO_EX_V3

    def _fee_slots(self, order: SignedOrder) -> Tuple[Tuple[str, ...], Tuple[bytes, ...]]:
        addresses = (checksum(order.maker_fee_asset), checksum(order.taker_fee_asset))
        data = tuple(
            b"" if is_zero_address(asset) else encode_erc20_asset_data(asset)
            for asset in addresses
        )
        return addresses, data

    def decode(self, call: UniformCallArgs) -> DecodedOrder:
        decoded = super().decode(call)
        decoded.extra["maker_fee_asset"] = (
            decode_erc20_asset_data(call.order_data[2]) if call.order_data[2] else ZERO_ADDRESS
        )
        decoded.extra["taker_fee_asset"] = (
            decode_erc20_asset_data(call.order_data[3]) if call.order_data[3] else ZERO_ADDRESS
        )
        return decoded
