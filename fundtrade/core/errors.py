"""
Error taxonomy for trade validation and for the infrastructure underneath it.

Validation errors describe why a trade would be rejected on-chain and carry
the offending values. Infrastructure errors describe why we could not find
out; they are never turned into validation failures.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(Enum):
    STRUCTURAL = "structural"
    AUTHORIZATION = "authorization"
    LIVENESS = "liveness"
    RESOURCE = "resource"
    ORDER_LIFECYCLE = "order_lifecycle"
    POLICY = "policy"


class FundTradeError(Exception):
    """Base class for everything raised by this package."""


class TradeValidationError(FundTradeError):
    kind: ErrorKind = ErrorKind.STRUCTURAL
    default_message = "Trade validation failed."

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return type(self).__name__

    def details(self) -> Dict[str, Any]:
        """Offending values, for logs and for callers that render diagnostics."""
        return {}

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "kind": self.kind.value, "message": self.message, **self.details()}

    def __repr__(self) -> str:
        return f"{self.code}({self.details()!r})"


# ---------------------------------------------------------------- structural


class InvalidExchangeIndexError(TradeValidationError):
    default_message = "Invalid exchange index."

    def __init__(self, index: int, message: Optional[str] = None) -> None:
        self.index = index
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        return {"index": self.index}


class AdapterMethodNotAllowedError(TradeValidationError):
    default_message = "Adapter method is not allowed."

    def __init__(self, adapter: str, selector: str, message: Optional[str] = None) -> None:
        self.adapter = adapter
        self.selector = selector
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        return {"adapter": self.adapter, "selector": self.selector}


class AssetNotRegisteredError(TradeValidationError):
    default_message = "Asset is not registered."

    def __init__(self, asset: str, message: Optional[str] = None) -> None:
        self.asset = asset
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        return {"asset": self.asset}


class ExchangeAdapterNotRegisteredError(TradeValidationError):
    default_message = "Exchange adapter is not registered."

    def __init__(self, adapter: str, message: Optional[str] = None) -> None:
        self.adapter = adapter
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        return {"adapter": self.adapter}


class ExchangeAndAdapterMismatchError(TradeValidationError):
    default_message = "Exchange and adapter do not match."

    def __init__(self, exchange: str, adapter: str, message: Optional[str] = None) -> None:
        self.exchange = exchange
        self.adapter = adapter
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        return {"exchange": self.exchange, "adapter": self.adapter}


class AdapterIsAlreadyAddedError(TradeValidationError):
    default_message = "Adapter is already added to this fund."

    def __init__(self, adapter: str, message: Optional[str] = None) -> None:
        self.adapter = adapter
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        return {"adapter": self.adapter}


class ProtocolNotSupportedError(TradeValidationError):
    default_message = "Not supported by this protocol."

    def __init__(self, protocol: str, intent: str, message: Optional[str] = None) -> None:
        self.protocol = protocol
        self.intent = intent
        super().__init__(message or f"{intent} orders are not supported by this protocol ({protocol}).")

    def details(self) -> Dict[str, Any]:
        return {"protocol": self.protocol, "intent": self.intent}


# ------------------------------------------------------------- authorization


class SenderIsNotManagerOrContractError(TradeValidationError):
    kind = ErrorKind.AUTHORIZATION
    default_message = "Sender is neither the fund manager nor the trading contract, and the fund is not shut down."

    def __init__(self, sender: str, message: Optional[str] = None) -> None:
        self.sender = sender
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        return {"sender": self.sender}


class SenderIsNotFundManagerError(TradeValidationError):
    kind = ErrorKind.AUTHORIZATION
    default_message = "Only the manager can call this function."

    def __init__(self, sender: str, manager: Optional[str] = None, message: Optional[str] = None) -> None:
        self.sender = sender
        self.manager = manager
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        return {"sender": self.sender, "manager": self.manager}


# ------------------------------------------------------------------ liveness


class FundIsShutDownError(TradeValidationError):
    kind = ErrorKind.LIVENESS
    default_message = "Fund is shut down."

    def __init__(self, hub: str, message: Optional[str] = None) -> None:
        self.hub = hub
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        return {"hub": self.hub}


# ------------------------------------------------------------------ resource


class InsufficientBalanceError(TradeValidationError):
    kind = ErrorKind.RESOURCE
    default_message = "Insufficient funds for this trade."

    def __init__(self, asset: str, requested: int, actual: int, message: Optional[str] = None) -> None:
        self.asset = asset
        self.requested = requested
        self.actual = actual
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        return {"asset": self.asset, "requested": self.requested, "actual": self.actual}


# ----------------------------------------------------------- order lifecycle


class AssetAlreadyHasOpenMakeOrderError(TradeValidationError):
    kind = ErrorKind.ORDER_LIFECYCLE
    default_message = "There is already an open make order for this asset."

    def __init__(
        self,
        exchange: str,
        asset: str,
        order_id: Optional[int] = None,
        expires_at: Optional[int] = None,
        message: Optional[str] = None,
    ) -> None:
        self.exchange = exchange
        self.asset = asset
        self.order_id = order_id
        self.expires_at = expires_at
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        return {
            "exchange": self.exchange,
            "asset": self.asset,
            "order_id": self.order_id,
            "expires_at": self.expires_at,
        }


class CooldownNotReachedError(TradeValidationError):
    kind = ErrorKind.ORDER_LIFECYCLE
    default_message = "Cooldown time for this asset has not been reached."

    def __init__(self, asset: str, cooldown_until: int, now: int, message: Optional[str] = None) -> None:
        self.asset = asset
        self.cooldown_until = cooldown_until
        self.now = now
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        return {"asset": self.asset, "cooldown_until": self.cooldown_until, "now": self.now}


# -------------------------------------------------------------------- policy


class PolicyValidationFailedError(TradeValidationError):
    kind = ErrorKind.POLICY
    default_message = (
        "Trade cannot be executed because risk management policies or compliance policies would be violated."
    )

    def __init__(
        self,
        selector: str,
        phase: Optional[str] = None,
        reason: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        self.selector = selector
        self.phase = phase
        self.reason = reason
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        return {"selector": self.selector, "phase": self.phase, "reason": self.reason}


# ------------------------------------------------------------ infrastructure


class InfrastructureError(FundTradeError):
    """Transport failure or unexpected on-chain behaviour. Not locally recoverable."""


class TransportError(InfrastructureError):
    pass


class RpcError(InfrastructureError):
    def __init__(self, code: int, message: str, data: Any = None) -> None:
        self.code = code
        self.rpc_message = message
        self.data = data
        super().__init__(f"rpc error {code}: {message}")


class ContractRevertError(InfrastructureError):
    def __init__(self, reason: Optional[str] = None, data: Optional[str] = None) -> None:
        self.reason = reason
        self.data = data
        super().__init__(f"execution reverted: {reason}" if reason else "execution reverted")


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of a validation pass: success, or exactly one taxonomy member."""
    error: Optional[TradeValidationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls) -> "ValidationOutcome":
        return cls()

    @classmethod
    def failure(cls, error: TradeValidationError) -> "ValidationOutcome":
        return cls(error=error)

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error
