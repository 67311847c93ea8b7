from fundtrade.execution.order_ledger import OrderLedger
from fundtrade.execution.trade_coordinator import SubmitResult, TradeCoordinator, TradeCoordinatorConfig

__all__ = ["OrderLedger", "SubmitResult", "TradeCoordinator", "TradeCoordinatorConfig"]
