"""
PolicyGateway: asks the fund's policy manager whether a call may proceed.

The policy manager answers by reverting. A revert from ``preValidate`` or
``postValidate`` is therefore a verdict; any other failure (transport, a
malformed response) is an infrastructure error and propagates.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from fundtrade.chain import abi
from fundtrade.core.errors import ContractRevertError
from fundtrade.core.types import UniformCallArgs
from fundtrade.core.utils import checksum
from fundtrade.infra.contracts import ContractClient
from fundtrade.infra.rpc import BlockTag

log = logging.getLogger("fundtrade")


class PolicyPhase(Enum):
    PRE = "pre"
    POST = "post"


_PHASE_FUNCTIONS = {
    PolicyPhase.PRE: abi.POLICY_PRE_VALIDATE,
    PolicyPhase.POST: abi.POLICY_POST_VALIDATE,
}


@dataclass(frozen=True)
class PolicyArgs:
    """
    Normalized tuple handed to every policy.

    addresses: maker, taker, maker asset, taker asset, exchange
    values: maker quantity, taker quantity, fill taker quantity
    """
    selector: bytes
    addresses: Tuple[str, str, str, str, str]
    values: Tuple[int, int, int]
    identifier: bytes

    @classmethod
    def from_call(cls, call: UniformCallArgs, exchange: str) -> "PolicyArgs":
        addrs = call.order_addresses
        vals = call.order_values
        return cls(
            selector=call.selector,
            addresses=(
                checksum(addrs[0]),
                checksum(addrs[1]),
                checksum(addrs[2]),
                checksum(addrs[3]),
                checksum(exchange),
            ),
            values=(vals[0], vals[1], vals[6]),
            identifier=call.identifier,
        )

    @property
    def selector_hex(self) -> str:
        return "0x" + self.selector.hex()

    def to_abi_args(self) -> list:
        return [self.selector, list(self.addresses), list(self.values), self.identifier]


@dataclass(frozen=True)
class PolicyVerdict:
    phase: PolicyPhase
    passed: bool
    reason: Optional[str] = None


class PolicyGateway:
    def __init__(
        self,
        contracts: ContractClient,
        log_event: Optional[Callable[..., None]] = None,
    ) -> None:
        self.contracts = contracts
        self._log_event = log_event or self._default_log

    def _default_log(self, event: str, **kwargs) -> None:
        log.info(json.dumps({"event": event, **kwargs}, default=str))

    async def evaluate(
        self,
        policy_manager: str,
        phase: PolicyPhase,
        args: PolicyArgs,
        block: Optional[BlockTag] = None,
    ) -> PolicyVerdict:
        try:
            await self.contracts.read(policy_manager, _PHASE_FUNCTIONS[phase], args.to_abi_args(), block)
        except ContractRevertError as exc:
            self._log_event(
                "policy_rejected",
                phase=phase.value,
                selector=args.selector_hex,
                reason=exc.reason,
            )
            return PolicyVerdict(phase, False, exc.reason)
        return PolicyVerdict(phase, True)

    async def evaluate_both(
        self,
        policy_manager: str,
        args: PolicyArgs,
        block: Optional[BlockTag] = None,
    ) -> List[PolicyVerdict]:
        """Pre and post phases, both awaited even when one fails."""
        pre, post = await asyncio.gather(
            self.evaluate(policy_manager, PolicyPhase.PRE, args, block),
            self.evaluate(policy_manager, PolicyPhase.POST, args, block),
        )
        return [pre, post]

    async def policies_for(
        self, policy_manager: str, selector: bytes, block: Optional[BlockTag] = None
    ) -> Tuple[List[str], List[str]]:
        """(pre, post) policy contracts registered for ``selector``."""
        pre, post = await self.contracts.read(policy_manager, abi.POLICY_GET_POLICIES_BY_SIG, (selector,), block)
        return [checksum(a) for a in pre], [checksum(a) for a in post]
