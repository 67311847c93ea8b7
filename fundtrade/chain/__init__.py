"""
Chain package.

ABI function table, the fund's routing context and the read-only state reader.
"""

from fundtrade.chain.context import FundContext, FundRoutes
from fundtrade.chain.state_reader import StateReader

__all__ = [
    "FundContext",
    "FundRoutes",
    "StateReader",
]
