from fundtrade.monitoring.metrics import TradeMetrics

__all__ = ["TradeMetrics"]
