"""
Prometheus metrics for trade submission and validation.
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, start_http_server


class TradeMetrics:
    """Counters and latency histogram owned by one coordinator."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        reg = self.registry

        self.trades_submitted = Counter(
            'trades_submitted_total',
            'callOnExchange transactions handed to the ledger',
            labelnames=['protocol', 'kind'],
            registry=reg
        )
        self.trades_rejected = Counter(
            'trades_rejected_total',
            'Trades rejected before submission',
            labelnames=['reason'],
            registry=reg
        )
        self.validation_latency_ms = Histogram(
            'validation_latency_ms',
            'Time spent in the validation pipeline (milliseconds)',
            buckets=[10, 25, 50, 100, 250, 500, 1000, 2500, 5000],
            registry=reg
        )
        self.rpc_errors = Counter(
            'rpc_errors_total',
            'Infrastructure errors by contract method',
            labelnames=['method'],
            registry=reg
        )

    def record_rpc_error(self, method: str, exc: Exception) -> None:
        """Signature matches ``ContractClient(on_rpc_error=...)``."""
        self.rpc_errors.labels(method=method).inc()

    def serve(self, port: int) -> None:
        start_http_server(port, registry=self.registry)
