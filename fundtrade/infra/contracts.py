"""
Contract call surface: ABI-encoded reads via ``eth_call`` and signed writes.

Reads and writes are the only way the rest of the package touches the chain.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Optional, Sequence, Tuple

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector, to_bytes

from fundtrade.core.errors import ContractRevertError, InfrastructureError, TransportError
from fundtrade.core.utils import checksum
from fundtrade.infra.nonce import NonceCoordinator
from fundtrade.infra.rpc import BlockTag, RpcClient

log = logging.getLogger("fundtrade")


@dataclass(frozen=True)
class ContractFunction:
    """One ABI function: canonical signature, selector, calldata codec."""
    name: str
    inputs: Tuple[str, ...] = ()
    outputs: Tuple[str, ...] = ()

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature)

    def encode_call(self, args: Sequence[Any] = ()) -> str:
        if len(args) != len(self.inputs):
            raise ValueError(f"{self.signature} expects {len(self.inputs)} args, got {len(args)}")
        body = encode(list(self.inputs), list(args)) if self.inputs else b""
        return "0x" + (self.selector + body).hex()

    def decode_result(self, data: Optional[str]) -> Any:
        """Decode return data; one output is returned bare, several as a tuple."""
        if not self.outputs:
            return None
        raw = to_bytes(hexstr=data) if data and data != "0x" else b""
        if not raw:
            raise ContractRevertError(f"{self.signature} returned no data")
        values = decode(list(self.outputs), raw)
        if len(values) == 1:
            return values[0]
        return values


@dataclass
class TransactionHandle:
    """A submitted, not yet confirmed, transaction."""
    tx_hash: str
    sender: str
    to: str
    data: str
    nonce: Optional[int] = None
    rpc: Optional[RpcClient] = field(default=None, repr=False, compare=False)
    timeout: float = 120.0
    poll_interval: float = 1.0

    async def wait(self, timeout: Optional[float] = None, poll_interval: Optional[float] = None) -> Dict[str, Any]:
        """
        Poll for the receipt. Raises ContractRevertError when the ledger
        rejected the transaction, TransportError on timeout.
        """
        timeout = self.timeout if timeout is None else timeout
        poll_interval = self.poll_interval if poll_interval is None else poll_interval
        if self.rpc is None:
            raise InfrastructureError("transaction handle is not bound to an rpc client")
        deadline = time.monotonic() + timeout
        while True:
            receipt = await self.rpc.get_transaction_receipt(self.tx_hash)
            if receipt is not None:
                status = receipt.get("status")
                if status is not None and int(status, 16) == 0:
                    raise ContractRevertError(f"transaction {self.tx_hash} reverted")
                return receipt
            if time.monotonic() >= deadline:
                raise TransportError(f"no receipt for {self.tx_hash} after {timeout}s")
            await asyncio.sleep(poll_interval)


class ContractClient:
    def __init__(
        self,
        rpc: RpcClient,
        signers: Optional[Iterable[Any]] = None,
        chain_id: Optional[int] = None,
        gas_multiplier: float = 1.2,
        nonces: Optional[NonceCoordinator] = None,
        block: BlockTag = "latest",
        on_rpc_error: Optional[Callable[[str, Exception], None]] = None,
        receipt_timeout: float = 120.0,
        receipt_poll_sec: float = 1.0,
    ) -> None:
        """
        Args:
            rpc: JSON-RPC transport
            signers: eth_account LocalAccounts used to sign writes locally;
                senders without a signer go through eth_sendTransaction
            chain_id: Chain id for signing (queried once when omitted)
            gas_multiplier: Headroom applied to eth_estimateGas
            nonces: Shared nonce coordinator
            block: Default block tag for reads
            on_rpc_error: Hook called with (method, exc) on infrastructure errors
            receipt_timeout: Default TransactionHandle.wait timeout (seconds)
            receipt_poll_sec: Default receipt polling interval (seconds)
        """
        self.rpc = rpc
        self._signers: Dict[str, Any] = {acct.address.lower(): acct for acct in (signers or [])}
        self._chain_id = chain_id
        self.gas_multiplier = gas_multiplier
        self.nonces = nonces or NonceCoordinator()
        self.block = block
        self._on_rpc_error = on_rpc_error
        self.receipt_timeout = receipt_timeout
        self.receipt_poll_sec = receipt_poll_sec

    def add_signer(self, account: Any) -> None:
        self._signers[account.address.lower()] = account

    async def read(
        self,
        address: str,
        function: ContractFunction,
        args: Sequence[Any] = (),
        block: Optional[BlockTag] = None,
    ) -> Any:
        data = function.encode_call(args)
        try:
            result = await self.rpc.eth_call(address, data, block if block is not None else self.block)
        except ContractRevertError:
            # some reads answer by reverting (out-of-range index, policy rejection)
            raise
        except InfrastructureError as exc:
            self._report(function.name, exc)
            raise
        return function.decode_result(result)

    async def write(
        self,
        address: str,
        function: ContractFunction,
        args: Sequence[Any],
        sender: str,
    ) -> TransactionHandle:
        data = function.encode_call(args)
        sender = checksum(sender)
        tx: Dict[str, Any] = {"from": sender, "to": checksum(address), "data": data}
        signer = self._signers.get(sender.lower())
        try:
            if signer is None:
                tx_hash = await self.rpc.send_transaction(tx)
                handle = self._handle(tx_hash, sender, tx["to"], data, None)
            else:
                handle = await self._sign_and_send(signer, tx)
        except InfrastructureError as exc:
            self._report(function.name, exc)
            raise
        log.info(json.dumps({
            "event": "tx_sent",
            "method": function.name,
            "to": handle.to,
            "sender": sender,
            "nonce": handle.nonce,
            "tx_hash": handle.tx_hash,
        }))
        return handle

    async def chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = await self.rpc.chain_id()
        return self._chain_id

    async def _sign_and_send(self, signer: Any, tx: Dict[str, Any]) -> TransactionHandle:
        sender = tx["from"]
        gas, gas_price, chain_id = await asyncio.gather(
            self.rpc.estimate_gas(tx),
            self.rpc.gas_price(),
            self.chain_id(),
        )
        lock = await self.nonces.get_lock(sender)
        async with lock:
            nonce = self.nonces.reserve(sender, await self.rpc.get_transaction_count(sender, "pending"))
            unsigned = {
                "to": tx["to"],
                "data": tx["data"],
                "value": 0,
                "gas": int(gas * self.gas_multiplier),
                "gasPrice": gas_price,
                "nonce": nonce,
                "chainId": chain_id,
            }
            signed = signer.sign_transaction(unsigned)
            try:
                tx_hash = await self.rpc.send_raw_transaction("0x" + bytes(signed.raw_transaction).hex())
            except InfrastructureError:
                self.nonces.release(sender, nonce)
                raise
        return self._handle(tx_hash, sender, tx["to"], tx["data"], nonce)

    def _handle(self, tx_hash: str, sender: str, to: str, data: str, nonce: Optional[int]) -> TransactionHandle:
        return TransactionHandle(
            tx_hash, sender, to, data, nonce, self.rpc,
            timeout=self.receipt_timeout, poll_interval=self.receipt_poll_sec,
        )

    def _report(self, method: str, exc: Exception) -> None:
        log.warning(json.dumps({"event": "rpc_error", "method": method, "err": str(exc)}))
        if self._on_rpc_error:
            self._on_rpc_error(method, exc)
