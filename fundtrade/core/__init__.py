"""
Core package.

Value types, the error taxonomy, and address/word helpers.
"""

from fundtrade.core.types import (
    CooldownState,
    DecodedOrder,
    ExchangeRegistration,
    OpenMakeOrder,
    OrderKind,
    SignedOrder,
    TradeRequest,
    UniformCallArgs,
)
from fundtrade.core.errors import (
    ErrorKind,
    FundTradeError,
    InfrastructureError,
    TradeValidationError,
    ValidationOutcome,
)

__all__ = [
    "CooldownState",
    "DecodedOrder",
    "ExchangeRegistration",
    "OpenMakeOrder",
    "OrderKind",
    "SignedOrder",
    "TradeRequest",
    "UniformCallArgs",
    "ErrorKind",
    "FundTradeError",
    "InfrastructureError",
    "TradeValidationError",
    "ValidationOutcome",
]
