"""
Value types shared by the adapters, the validation pipeline and the ledger.

All of them are immutable. Quantities are integers in the asset's smallest
unit; timestamps are integer seconds since the epoch as reported by the chain.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

from eth_utils import function_signature_to_4byte_selector

from fundtrade.core.utils import ZERO_ADDRESS, ZERO_BYTES32, is_zero_address

ADDRESS_SLOTS = 8
VALUE_SLOTS = 8
DATA_SLOTS = 4


class OrderKind(Enum):
    """Intent of a trade request."""
    MAKE = "make"
    TAKE = "take"
    CANCEL = "cancel"


@dataclass(frozen=True)
class SignedOrder:
    """
    Protocol-native fields of an off-chain signed order.

    Only the signed-order protocols read this; the other adapters ignore it.
    """
    maker: str = ZERO_ADDRESS
    taker: str = ZERO_ADDRESS
    fee_recipient: str = ZERO_ADDRESS
    sender: str = ZERO_ADDRESS
    maker_fee: int = 0
    taker_fee: int = 0
    expiration: int = 0
    salt: int = 0
    signature: bytes = b""
    maker_fee_asset: str = ZERO_ADDRESS
    taker_fee_asset: str = ZERO_ADDRESS


@dataclass(frozen=True)
class TradeRequest:
    """Protocol-agnostic description of one intended trading action."""
    kind: OrderKind
    exchange_index: int
    maker_asset: str
    taker_asset: str
    maker_quantity: int = 0
    taker_quantity: int = 0
    order_id: Optional[int] = None
    fill_quantity: Optional[int] = None
    counterparty: Optional[str] = None
    signed_order: Optional[SignedOrder] = None

    @property
    def offered_asset(self) -> str:
        """Asset the fund gives up: the maker asset for a make, the taker asset for a take."""
        return self.taker_asset if self.kind is OrderKind.TAKE else self.maker_asset

    @property
    def offered_quantity(self) -> int:
        if self.kind is OrderKind.TAKE:
            return self.fill_quantity if self.fill_quantity is not None else self.taker_quantity
        return self.maker_quantity


@dataclass(frozen=True)
class ExchangeRegistration:
    """One entry of the trading module's append-only exchange list."""
    index: int
    exchange: str
    adapter: str
    takes_custody: bool


@dataclass(frozen=True)
class OpenMakeOrder:
    exchange: str
    sell_asset: str
    buy_asset: str
    order_id: int
    expires_at: int
    order_index: int
    fee_asset: str = ZERO_ADDRESS

    @property
    def is_open(self) -> bool:
        return not is_zero_address(self.buy_asset)

    def is_expired(self, now: int) -> bool:
        return self.expires_at <= now

    @property
    def expires_at_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.expires_at, tz=timezone.utc)


@dataclass(frozen=True)
class CooldownState:
    """Per-asset make-order cooldown. ``until == 0`` means no cooldown in effect."""
    asset: str
    until: int = 0

    @property
    def is_set(self) -> bool:
        return self.until > 0

    def active(self, now: int) -> bool:
        return self.until > now

    @property
    def until_datetime(self) -> Optional[datetime]:
        if not self.is_set:
            return None
        return datetime.fromtimestamp(self.until, tz=timezone.utc)


def _pad(items: tuple, size: int, filler) -> tuple:
    if len(items) > size:
        raise ValueError(f"expected at most {size} slots, got {len(items)}")
    return tuple(items) + (filler,) * (size - len(items))


@dataclass(frozen=True)
class UniformCallArgs:
    """
    The fixed wire shape accepted by the trading module's ``callOnExchange``.

    Short slot tuples are padded with zero addresses / zero values / empty
    blobs so every adapter produces exactly 8 addresses, 8 values and 4 blobs.
    """
    exchange_index: int
    method_signature: str
    order_addresses: Tuple[str, ...] = ()
    order_values: Tuple[int, ...] = ()
    order_data: Tuple[bytes, ...] = ()
    identifier: bytes = ZERO_BYTES32
    signature: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "order_addresses", _pad(tuple(self.order_addresses), ADDRESS_SLOTS, ZERO_ADDRESS))
        object.__setattr__(self, "order_values", _pad(tuple(self.order_values), VALUE_SLOTS, 0))
        object.__setattr__(self, "order_data", _pad(tuple(self.order_data), DATA_SLOTS, b""))
        if len(self.identifier) != 32:
            raise ValueError(f"identifier must be 32 bytes, got {len(self.identifier)}")
        if any(v < 0 for v in self.order_values):
            raise ValueError("order values must be non-negative")

    @property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.method_signature)

    @property
    def selector_hex(self) -> str:
        return "0x" + self.selector.hex()

    def to_abi_args(self) -> list:
        """Positional arguments for ``callOnExchange``."""
        return [
            self.exchange_index,
            self.method_signature,
            list(self.order_addresses),
            list(self.order_values),
            list(self.order_data),
            self.identifier,
            self.signature,
        ]


@dataclass(frozen=True)
class DecodedOrder:
    """A protocol's own reading of the uniform slots."""
    maker_asset: str
    taker_asset: str
    maker_quantity: int
    taker_quantity: int
    order_id: Optional[int] = None
    fill_quantity: Optional[int] = None
    extra: dict = field(default_factory=dict, compare=False)
