"""
Minimal async JSON-RPC client for an Ethereum node using HTTP/2.
"""

from __future__ import annotations

import itertools
from typing import Any, Dict, List, Optional, Union

import httpx
from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import to_bytes

from fundtrade.core.errors import ContractRevertError, RpcError, TransportError

# Error(string) selector used by solidity require/revert messages.
ERROR_STRING_SELECTOR = bytes.fromhex("08c379a0")

BlockTag = Union[str, int]


def block_param(block: Optional[BlockTag]) -> str:
    if block is None:
        return "latest"
    if isinstance(block, int):
        return hex(block)
    return block


def decode_revert_reason(data: Optional[str]) -> Optional[str]:
    """Decode the ``Error(string)`` payload of a revert, if that is what it is."""
    if not data or not isinstance(data, str):
        return None
    raw = to_bytes(hexstr=data)
    if raw[:4] != ERROR_STRING_SELECTOR:
        return None
    try:
        (reason,) = decode(["string"], raw[4:])
    except DecodingError:
        return None
    return reason


def _is_revert(error: Dict[str, Any]) -> bool:
    # geth/anvil use code 3 with revert data; others use -32000/-32015 with a message.
    if error.get("code") == 3:
        return True
    message = str(error.get("message", "")).lower()
    return "revert" in message


class RpcClient:
    def __init__(self, url: str, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None) -> None:
        self.url = url
        # If a shared client is passed in, we won't close it in close(); otherwise we own the client.
        if client is not None:
            self.client = client
            self._owns_client = False
        else:
            self.client = httpx.AsyncClient(http2=True, timeout=timeout)
            self._owns_client = True
        self._ids = itertools.count(1)

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params or []}
        try:
            resp = await self.client.post(self.url, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as exc:
            raise TransportError(f"{method}: {exc}") from exc
        except ValueError as exc:
            raise TransportError(f"{method}: invalid JSON response") from exc

        if not isinstance(data, dict):
            raise TransportError(f"{method}: unexpected response shape")
        error = data.get("error")
        if error:
            if _is_revert(error):
                revert_data = error.get("data")
                if isinstance(revert_data, dict):
                    revert_data = revert_data.get("data")
                reason = decode_revert_reason(revert_data) or _strip_revert_prefix(error.get("message"))
                raise ContractRevertError(reason, revert_data)
            raise RpcError(int(error.get("code", 0)), str(error.get("message", "")), error.get("data"))
        return data.get("result")

    async def eth_call(self, to: str, data: str, block: Optional[BlockTag] = None, sender: Optional[str] = None) -> str:
        tx: Dict[str, Any] = {"to": to, "data": data}
        if sender:
            tx["from"] = sender
        return await self.call("eth_call", [tx, block_param(block)])

    async def chain_id(self) -> int:
        return int(await self.call("eth_chainId"), 16)

    async def get_transaction_count(self, address: str, block: BlockTag = "pending") -> int:
        return int(await self.call("eth_getTransactionCount", [address, block_param(block)]), 16)

    async def gas_price(self) -> int:
        return int(await self.call("eth_gasPrice"), 16)

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        return int(await self.call("eth_estimateGas", [tx]), 16)

    async def send_raw_transaction(self, raw: str) -> str:
        return await self.call("eth_sendRawTransaction", [raw])

    async def send_transaction(self, tx: Dict[str, Any]) -> str:
        return await self.call("eth_sendTransaction", [tx])

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return await self.call("eth_getTransactionReceipt", [tx_hash])

    async def get_block(self, block: Optional[BlockTag] = None) -> Dict[str, Any]:
        result = await self.call("eth_getBlockByNumber", [block_param(block), False])
        if result is None:
            raise RpcError(-1, f"block {block_param(block)} not found")
        return result


def _strip_revert_prefix(message: Optional[str]) -> Optional[str]:
    if not message:
        return None
    for prefix in ("execution reverted: ", "execution reverted"):
        if message.startswith(prefix):
            return message[len(prefix):] or None
    return message
