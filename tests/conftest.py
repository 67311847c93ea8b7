"""
Pytest configuration and fixtures.

Adds the repo root to sys.path so tests can import ``fundtrade`` without an
install, and provides FakeChain: an in-memory fund that answers the contract
call surface (``read``/``write`` by function name) the way the deployed
contracts would.
"""

import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

import pytest

repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from fundtrade.adapters import ExchangeProtocol  # noqa: E402
from fundtrade.chain.abi import CANCEL_ORDER_SIGNATURE, MAKE_ORDER_SIGNATURE, TAKE_ORDER_SIGNATURE  # noqa: E402
from fundtrade.chain.context import FundContext, FundRoutes  # noqa: E402
from fundtrade.chain.state_reader import StateReader  # noqa: E402
from fundtrade.core.errors import ContractRevertError, TransportError  # noqa: E402
from fundtrade.core.utils import ZERO_ADDRESS  # noqa: E402
from fundtrade.execution.trade_coordinator import TradeCoordinator, TradeCoordinatorConfig  # noqa: E402
from fundtrade.infra.contracts import ContractFunction, TransactionHandle  # noqa: E402
from eth_utils import function_signature_to_4byte_selector  # noqa: E402


def addr(n: int) -> str:
    """Digit-only addresses are their own checksum form."""
    return f"0x{n:040d}"


MANAGER = addr(1)
OUTSIDER = addr(2)
HUB = addr(10)
TRADING = addr(11)
VAULT = addr(12)
REGISTRY = addr(13)
POLICY_MANAGER = addr(14)

OASIS_EXCHANGE, OASIS_ADAPTER = addr(101), addr(201)
UNISWAP_EXCHANGE, UNISWAP_ADAPTER = addr(102), addr(202)
ZEROX_EXCHANGE, ZEROX_ADAPTER = addr(103), addr(203)

MLN = addr(301)
WETH = addr(302)
DAI = addr(303)
UNLISTED = addr(399)

NOW = 1_700_000_000
ORDER_LIFESPAN = 86400
MAKE_ORDER_COOLDOWN = 1800

SELECTORS = [function_signature_to_4byte_selector(s) for s in
             (MAKE_ORDER_SIGNATURE, TAKE_ORDER_SIGNATURE, CANCEL_ORDER_SIGNATURE)]


class FakeRpc:
    def __init__(self, chain: "FakeChain") -> None:
        self.chain = chain
        self.receipts: Dict[str, Dict[str, Any]] = {}

    async def get_block(self, block=None) -> Dict[str, Any]:
        self.chain.reads.append("getBlock")
        return {"number": "0x10", "timestamp": hex(self.chain.timestamp)}

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return self.receipts.get(tx_hash)


class FakeChain:
    """One fund on an in-memory chain. Duck-types ContractClient."""

    def __init__(self) -> None:
        self.rpc = FakeRpc(self)
        self.timestamp = NOW
        self.manager = MANAGER
        self.shut_down = False
        self.exchanges: List[Tuple[str, str, bool]] = [
            (OASIS_EXCHANGE, OASIS_ADAPTER, False),
            (UNISWAP_EXCHANGE, UNISWAP_ADAPTER, False),
            (ZEROX_EXCHANGE, ZEROX_ADAPTER, False),
        ]
        self.registered_assets: List[str] = [MLN, WETH, DAI]
        self.allowed_methods: Set[Tuple[str, bytes]] = {
            (adapter.lower(), selector)
            for _, adapter, _ in self.exchanges
            for selector in SELECTORS
        }
        # registry: adapter -> (exists, exchange, takes custody)
        self.registry_info: Dict[str, Tuple[bool, str, bool]] = {
            adapter.lower(): (True, exchange, custody) for exchange, adapter, custody in self.exchanges
        }
        self.balances: Dict[Tuple[str, str], int] = {
            (MLN.lower(), VAULT.lower()): 10 ** 20,
            (WETH.lower(), VAULT.lower()): 10 ** 20,
        }
        # (exchange, sell asset) -> (id, expiresAt, orderIndex, buyAsset, feeAsset)
        self.open_orders: Dict[Tuple[str, str], Tuple[int, int, int, str, str]] = {}
        self.order_details: List[Tuple[str, str, int, int]] = []
        self.cooldowns: Dict[str, int] = {}
        self.quantity_being_traded: Dict[str, int] = {}
        self.quantity_held_in_exchange: Dict[str, int] = {}
        # order hash -> LibOrder.Order tuple
        self.zero_ex_orders: Dict[bytes, tuple] = {}
        self.policy_reject: Dict[str, Optional[str]] = {"preValidate": None, "postValidate": None}
        self.policy_transport_failure = False
        self.reads: List[str] = []
        self.writes: List[Tuple[str, str, list, str]] = []
        self.write_barrier: Optional[int] = None
        self._arrived = 0
        self._released: Optional[asyncio.Event] = None
        self._next_order_id = 1

    def routes(self) -> Tuple[str, ...]:
        return (addr(20), addr(21), addr(22), POLICY_MANAGER, addr(23), TRADING, VAULT, REGISTRY,
                addr(24), addr(25), MLN)

    def context(self) -> FundContext:
        return FundContext(trading=TRADING, hub=HUB, routes=FundRoutes.from_tuple(self.routes()))

    def place_order(self, exchange: str, sell: str, buy: str, expires_at: int, order_id: int = 7) -> None:
        self.order_details.append((sell, buy, 10 ** 18, 2 * 10 ** 18))
        index = len(self.order_details) - 1
        self.open_orders[(exchange.lower(), sell.lower())] = (order_id, expires_at, index, buy, ZERO_ADDRESS)

    # ---- read surface

    async def read(self, address: str, function: ContractFunction, args=(), block=None) -> Any:
        await asyncio.sleep(0)
        # calldata must encode
        function.encode_call(args)
        self.reads.append(function.name)
        handler = getattr(self, f"_r_{function.name}")
        return handler(address, *args)

    def _r_hub(self, _):
        return HUB

    def _r_routes(self, _):
        return self.routes()

    def _r_manager(self, _):
        return self.manager

    def _r_isShutDown(self, _):
        return self.shut_down

    def _r_name(self, _):
        return "Test Fund"

    def _r_balanceOf(self, asset, owner):
        return self.balances.get((asset.lower(), owner.lower()), 0)

    def _r_assetIsRegistered(self, _, asset):
        return asset.lower() in {a.lower() for a in self.registered_assets}

    def _r_getRegisteredAssets(self, _):
        return list(self.registered_assets)

    def _r_adapterMethodIsAllowed(self, _, adapter, selector):
        return (adapter.lower(), bytes(selector)) in self.allowed_methods

    def _r_exchangeAdapterIsRegistered(self, _, adapter):
        return adapter.lower() in self.registry_info

    def _r_exchangeInformation(self, _, adapter):
        return self.registry_info.get(adapter.lower(), (False, ZERO_ADDRESS, False))

    def _r_exchanges(self, _, index):
        if index >= len(self.exchanges):
            raise ContractRevertError()
        return self.exchanges[index]

    def _r_getExchangeInfo(self, _):
        return (
            [e for e, _, _ in self.exchanges],
            [a for _, a, _ in self.exchanges],
            [c for _, _, c in self.exchanges],
        )

    def _r_adapterIsAdded(self, _, adapter):
        return any(a.lower() == adapter.lower() for _, a, _ in self.exchanges)

    def _r_exchangesToOpenMakeOrders(self, _, exchange, asset):
        return self.open_orders.get((exchange.lower(), asset.lower()), (0, 0, 0, ZERO_ADDRESS, ZERO_ADDRESS))

    def _r_isInOpenMakeOrder(self, _, asset):
        return any(sell == asset.lower() for _, sell in self.open_orders)

    def _r_isOrderExpired(self, _, exchange, asset):
        slot = self.open_orders.get((exchange.lower(), asset.lower()))
        return bool(slot) and slot[1] <= self.timestamp

    def _r_ORDER_LIFESPAN(self, _):
        return ORDER_LIFESPAN

    def _r_MAKE_ORDER_COOLDOWN(self, _):
        return MAKE_ORDER_COOLDOWN

    def _r_makerAssetCooldown(self, _, asset):
        return self.cooldowns.get(asset.lower(), 0)

    def _r_getOrderDetails(self, _, index):
        if index >= len(self.order_details):
            raise ContractRevertError()
        return self.order_details[index]

    def _r_updateAndGetQuantityBeingTraded(self, _, asset):
        return self.quantity_being_traded.get(asset.lower(), 0)

    def _r_updateAndGetQuantityHeldInExchange(self, _, asset):
        return self.quantity_held_in_exchange.get(asset.lower(), 0)

    def _r_getZeroExOrderDetails(self, _, identifier):
        return self.zero_ex_orders.get(
            identifier, (ZERO_ADDRESS,) * 4 + (0,) * 6 + (b"", b"")
        )

    def _policy(self, name: str) -> None:
        if self.policy_transport_failure:
            raise TransportError("connection reset")
        reason = self.policy_reject[name]
        if reason is not None:
            raise ContractRevertError(reason)

    def _r_preValidate(self, _, selector, addresses, values, identifier):
        self._policy("preValidate")

    def _r_postValidate(self, _, selector, addresses, values, identifier):
        self._policy("postValidate")

    def _r_getPoliciesBySig(self, _, selector):
        return [addr(401)], [addr(402), addr(403)]

    # ---- write surface

    async def write(self, address: str, function: ContractFunction, args, sender: str) -> TransactionHandle:
        data = function.encode_call(args)
        if self.write_barrier is not None:
            if self._released is None:
                self._released = asyncio.Event()
            self._arrived += 1
            if self._arrived >= self.write_barrier:
                self._released.set()
            await self._released.wait()
        self.writes.append((address, function.name, list(args), sender))
        tx_hash = "0x" + f"{len(self.writes):064x}"
        ok = self._apply(function.name, list(args))
        self.rpc.receipts[tx_hash] = {"transactionHash": tx_hash, "status": "0x1" if ok else "0x0"}
        return TransactionHandle(tx_hash, sender, address, data, None, self.rpc)

    def _apply(self, name: str, args: list) -> bool:
        if name != "callOnExchange":
            return True
        index, method, addresses, values = args[0], args[1], args[2], args[3]
        exchange = self.exchanges[index][0].lower()
        key = (exchange, addresses[2].lower())
        if method.startswith("makeOrder"):
            if key in self.open_orders:
                return False
            order_id = self._next_order_id
            self._next_order_id += 1
            self.order_details.append((addresses[2], addresses[3], values[0], values[1]))
            self.open_orders[key] = (
                order_id, self.timestamp + ORDER_LIFESPAN, len(self.order_details) - 1, addresses[3], ZERO_ADDRESS
            )
        elif method.startswith("cancelOrder"):
            self.open_orders.pop(key, None)
        return True


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def context(chain: FakeChain) -> FundContext:
    return chain.context()


@pytest.fixture
def reader(chain: FakeChain) -> StateReader:
    return StateReader(chain)


@pytest.fixture
def events() -> List[Dict[str, Any]]:
    return []


@pytest.fixture
def coordinator(chain: FakeChain, reader: StateReader, events) -> TradeCoordinator:
    def capture(event: str, **kwargs: Any) -> None:
        events.append({"event": event, **kwargs})

    config = TradeCoordinatorConfig(
        protocols={
            OASIS_ADAPTER: ExchangeProtocol.OASIS_DEX,
            UNISWAP_ADAPTER: ExchangeProtocol.UNISWAP,
            ZEROX_ADAPTER: ExchangeProtocol.ZERO_EX_V2,
        },
        log_event_callback=capture,
    )
    return TradeCoordinator(TRADING, reader, chain, config=config)
