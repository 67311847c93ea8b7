"""
FundContext: the immutable set of component addresses for one fund.

Resolved once per fund instance from the trading module's routing table and
passed explicitly into every component that needs it; never mutated.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from fundtrade.core.utils import checksum

if TYPE_CHECKING:
    from fundtrade.chain.state_reader import StateReader

log = logging.getLogger("fundtrade")


@dataclass(frozen=True)
class FundRoutes:
    accounting: str
    fee_manager: str
    participation: str
    policy_manager: str
    shares: str
    trading: str
    vault: str
    registry: str
    version: str
    engine: str
    mln_token: str

    @classmethod
    def from_tuple(cls, values: Sequence[str]) -> "FundRoutes":
        if len(values) != 11:
            raise ValueError(f"routing table has 11 entries, got {len(values)}")
        return cls(*(checksum(v) for v in values))


@dataclass(frozen=True)
class FundContext:
    trading: str
    hub: str
    routes: FundRoutes

    @property
    def vault(self) -> str:
        return self.routes.vault

    @property
    def registry(self) -> str:
        return self.routes.registry

    @property
    def policy_manager(self) -> str:
        return self.routes.policy_manager

    @classmethod
    async def resolve(cls, reader: "StateReader", trading: str) -> "FundContext":
        hub, routes = await asyncio.gather(reader.get_hub(trading), reader.get_routes(trading))
        ctx = cls(trading=checksum(trading), hub=hub, routes=routes)
        log.info(json.dumps({
            "event": "fund_context_resolved",
            "trading": ctx.trading,
            "hub": ctx.hub,
            "vault": ctx.vault,
            "registry": ctx.registry,
            "policy_manager": ctx.policy_manager,
        }))
        return ctx
