"""
Tests for the exchange adapters.

Tests cover:
- Uniform slot packing per protocol
- Decoding the slots back to the original legs
- Intents a protocol does not support
- Declared checks per intent
"""

import pytest
from eth_utils import function_signature_to_4byte_selector

from fundtrade.adapters import (
    ADAPTERS,
    CheckId,
    ExchangeProtocol,
    KyberNetworkAdapter,
    MelonEngineAdapter,
    OasisDexAdapter,
    UniswapAdapter,
    ZeroExV2Adapter,
    ZeroExV3Adapter,
    adapter_for,
)
from fundtrade.adapters.zero_ex import decode_erc20_asset_data, encode_erc20_asset_data
from fundtrade.chain.abi import CANCEL_ORDER_SIGNATURE, MAKE_ORDER_SIGNATURE, TAKE_ORDER_SIGNATURE
from fundtrade.core.errors import ProtocolNotSupportedError
from fundtrade.core.types import ExchangeRegistration, OrderKind, SignedOrder, TradeRequest
from fundtrade.core.utils import ZERO_ADDRESS, to_bytes32

from conftest import MLN, TRADING, WETH, addr

EXCHANGE = addr(500)
ADAPTER = addr(600)
MAKER = addr(700)


def make_adapter(cls, index: int = 0):
    return cls(ExchangeRegistration(index, EXCHANGE, ADAPTER, False), TRADING)


def make_request(**overrides) -> TradeRequest:
    fields = dict(
        kind=OrderKind.MAKE,
        exchange_index=0,
        maker_asset=WETH,
        taker_asset=MLN,
        maker_quantity=10 ** 18,
        taker_quantity=3 * 10 ** 18,
    )
    fields.update(overrides)
    return TradeRequest(**fields)


MAKERS = [OasisDexAdapter, ZeroExV2Adapter, ZeroExV3Adapter]
TAKE_ONLY = [UniswapAdapter, KyberNetworkAdapter, MelonEngineAdapter]


class TestMakeRoundTrip:
    @pytest.mark.parametrize("cls", MAKERS)
    def test_decode_recovers_make_legs(self, cls):
        adapter = make_adapter(cls)
        request = make_request(signed_order=SignedOrder(expiration=1_700_086_400, salt=42))

        call = adapter.build_call(request)
        decoded = adapter.decode(call)

        assert decoded.maker_asset == request.maker_asset
        assert decoded.taker_asset == request.taker_asset
        assert decoded.maker_quantity == request.maker_quantity
        assert decoded.taker_quantity == request.taker_quantity

    @pytest.mark.parametrize("cls", MAKERS)
    def test_make_selector(self, cls):
        call = make_adapter(cls).build_call(make_request())
        assert call.method_signature == MAKE_ORDER_SIGNATURE
        assert call.selector == function_signature_to_4byte_selector(MAKE_ORDER_SIGNATURE)

    @pytest.mark.parametrize("cls", MAKERS + TAKE_ONLY)
    def test_slots_are_fixed_size(self, cls):
        adapter = make_adapter(cls)
        kind = OrderKind.MAKE if cls in MAKERS else OrderKind.TAKE
        call = adapter.build_call(make_request(kind=kind, order_id=5, counterparty=MAKER,
                                               signed_order=SignedOrder(maker=MAKER)))
        assert len(call.order_addresses) == 8
        assert len(call.order_values) == 8
        assert len(call.order_data) == 4
        assert len(call.identifier) == 32


class TestOasisDex:
    def test_make_slots(self):
        call = make_adapter(OasisDexAdapter).build_call(make_request())
        assert call.order_addresses[:4] == (TRADING, ZERO_ADDRESS, WETH, MLN)
        assert call.order_values[:2] == (10 ** 18, 3 * 10 ** 18)
        assert call.identifier == to_bytes32(0)

    def test_take_carries_offer_id_and_fill(self):
        request = make_request(kind=OrderKind.TAKE, order_id=77, fill_quantity=10 ** 18, counterparty=MAKER)
        adapter = make_adapter(OasisDexAdapter)

        call = adapter.build_call(request)
        decoded = adapter.decode(call)

        assert call.order_addresses[0] == MAKER
        assert call.order_addresses[1] == TRADING
        assert call.order_values[6] == 10 ** 18
        assert decoded.order_id == 77
        assert decoded.fill_quantity == 10 ** 18

    def test_take_without_fill_fills_taker_quantity(self):
        call = make_adapter(OasisDexAdapter).build_call(make_request(kind=OrderKind.TAKE, order_id=1))
        assert call.order_values[6] == 3 * 10 ** 18

    def test_cancel_requires_order_id(self):
        with pytest.raises(ValueError):
            make_adapter(OasisDexAdapter).build_call(make_request(kind=OrderKind.CANCEL))

    def test_cancel_slots(self):
        call = make_adapter(OasisDexAdapter).build_call(make_request(kind=OrderKind.CANCEL, order_id=9))
        assert call.method_signature == CANCEL_ORDER_SIGNATURE
        assert call.identifier == to_bytes32(9)

    def test_take_also_requires_liveness(self):
        checks = make_adapter(OasisDexAdapter).required_checks(OrderKind.TAKE)
        assert CheckId.FUND_LIVENESS in checks
        assert checks.index(CheckId.FUND_LIVENESS) < checks.index(CheckId.SUFFICIENT_BALANCE)


class TestZeroEx:
    def test_asset_data_round_trip(self):
        data = encode_erc20_asset_data(WETH)
        assert data[:4].hex() == "f47261b0"
        assert len(data) == 36
        assert decode_erc20_asset_data(data) == WETH

    def test_rejects_foreign_asset_data(self):
        with pytest.raises(ValueError):
            decode_erc20_asset_data(bytes.fromhex("02571792") + b"\x00" * 32)

    def test_make_packs_signed_order_fields(self):
        order = SignedOrder(
            fee_recipient=addr(801), maker_fee=5, taker_fee=6, expiration=1_700_000_600, salt=99,
            signature=b"\x1b" * 66,
        )
        call = make_adapter(ZeroExV2Adapter).build_call(make_request(signed_order=order))
        assert call.order_addresses[0] == TRADING
        assert call.order_addresses[4] == addr(801)
        assert call.order_values[2:6] == (5, 6, 1_700_000_600, 99)
        assert call.signature == b"\x1b" * 66
        assert call.order_data[2:] == (b"", b"")

    def test_take_needs_signed_order(self):
        with pytest.raises(ValueError):
            make_adapter(ZeroExV2Adapter).build_call(make_request(kind=OrderKind.TAKE))

    def test_take_uses_order_maker(self):
        request = make_request(kind=OrderKind.TAKE, fill_quantity=10 ** 18, signed_order=SignedOrder(maker=MAKER))
        call = make_adapter(ZeroExV2Adapter).build_call(request)
        assert call.order_addresses[0] == MAKER
        assert call.order_values[6] == 10 ** 18

    def test_v3_adds_fee_asset_data(self):
        order = SignedOrder(maker_fee_asset=MLN, taker_fee_asset=ZERO_ADDRESS)
        adapter = make_adapter(ZeroExV3Adapter)

        call = adapter.build_call(make_request(signed_order=order))
        decoded = adapter.decode(call)

        assert call.order_addresses[6] == MLN
        assert call.order_data[2] == encode_erc20_asset_data(MLN)
        assert call.order_data[3] == b""
        assert decoded.extra["maker_fee_asset"] == MLN
        assert decoded.extra["taker_fee_asset"] == ZERO_ADDRESS

    def test_v2_and_v3_differ_only_in_fee_slots(self):
        order = SignedOrder(maker_fee_asset=MLN, taker_fee_asset=MLN, salt=3)
        v2 = make_adapter(ZeroExV2Adapter).build_call(make_request(signed_order=order))
        v3 = make_adapter(ZeroExV3Adapter).build_call(make_request(signed_order=order))
        assert v2.order_addresses[:6] == v3.order_addresses[:6]
        assert v2.order_values == v3.order_values
        assert v2.order_data[:2] == v3.order_data[:2]
        assert v2.order_data[2:] != v3.order_data[2:]


class TestTakeOnly:
    @pytest.mark.parametrize("cls", TAKE_ONLY)
    @pytest.mark.parametrize("kind", [OrderKind.MAKE, OrderKind.CANCEL])
    def test_make_and_cancel_not_supported(self, cls, kind):
        adapter = make_adapter(cls)
        with pytest.raises(ProtocolNotSupportedError) as exc:
            adapter.build_call(make_request(kind=kind, order_id=1))
        assert exc.value.intent == kind.value
        assert exc.value.protocol == adapter.protocol.value

    @pytest.mark.parametrize("cls", TAKE_ONLY)
    def test_supports_take_only(self, cls):
        adapter = make_adapter(cls)
        assert adapter.supports(OrderKind.TAKE)
        assert not adapter.supports(OrderKind.MAKE)
        assert not adapter.supports(OrderKind.CANCEL)

    @pytest.mark.parametrize("cls", TAKE_ONLY)
    def test_required_checks_for_unsupported_intent(self, cls):
        with pytest.raises(ProtocolNotSupportedError):
            make_adapter(cls).required_checks(OrderKind.CANCEL)

    @pytest.mark.parametrize("cls", TAKE_ONLY)
    def test_take_round_trip(self, cls):
        adapter = make_adapter(cls)
        request = make_request(kind=OrderKind.TAKE)

        call = adapter.build_call(request)
        decoded = adapter.decode(call)

        assert call.method_signature == TAKE_ORDER_SIGNATURE
        assert call.order_addresses[0] == EXCHANGE
        assert (decoded.maker_asset, decoded.taker_asset) == (WETH, MLN)
        assert decoded.fill_quantity == request.taker_quantity

    def test_partial_swap_rejected(self):
        with pytest.raises(ValueError):
            make_adapter(UniswapAdapter).build_call(make_request(kind=OrderKind.TAKE, fill_quantity=1))

    def test_engine_needs_distinct_assets(self):
        with pytest.raises(ValueError):
            make_adapter(MelonEngineAdapter).build_call(make_request(kind=OrderKind.TAKE, taker_asset=WETH))


class TestRegistry:
    def test_every_protocol_has_an_adapter(self):
        assert set(ADAPTERS) == set(ExchangeProtocol)

    def test_adapter_for_accepts_tag_string(self):
        adapter = adapter_for("ZeroExV3", ExchangeRegistration(4, EXCHANGE, ADAPTER, False), TRADING)
        assert isinstance(adapter, ZeroExV3Adapter)
        assert adapter.exchange_index == 4

    def test_request_bound_to_other_index(self):
        with pytest.raises(ValueError):
            make_adapter(OasisDexAdapter, index=1).build_call(make_request(exchange_index=0))

    def test_cancel_skips_order_checks(self):
        checks = make_adapter(OasisDexAdapter).required_checks(OrderKind.CANCEL)
        assert CheckId.NO_OPEN_ORDER not in checks
        assert CheckId.COOLDOWN not in checks
        assert CheckId.SUFFICIENT_BALANCE not in checks
        assert checks[-1] is CheckId.POLICY
