"""
ABI function table for the contracts this package reads from and writes to.
"""

from __future__ import annotations

from fundtrade.infra.contracts import ContractFunction

_A = "address"
_U = "uint256"

# Adapter-side functions selected through callOnExchange.
_ADAPTER_ARGS = "(address,address[8],uint256[8],bytes[4],bytes32,bytes)"
MAKE_ORDER_SIGNATURE = "makeOrder" + _ADAPTER_ARGS
TAKE_ORDER_SIGNATURE = "takeOrder" + _ADAPTER_ARGS
CANCEL_ORDER_SIGNATURE = "cancelOrder" + _ADAPTER_ARGS

# ---- Trading (spoke)
TRADING_HUB = ContractFunction("hub", (), (_A,))
TRADING_ROUTES = ContractFunction("routes", (), (_A,) * 11)
TRADING_EXCHANGES = ContractFunction("exchanges", (_U,), (_A, _A, "bool"))
TRADING_GET_EXCHANGE_INFO = ContractFunction("getExchangeInfo", (), ("address[]", "address[]", "bool[]"))
TRADING_ADAPTER_IS_ADDED = ContractFunction("adapterIsAdded", (_A,), ("bool",))
TRADING_OPEN_MAKE_ORDERS = ContractFunction("exchangesToOpenMakeOrders", (_A, _A), (_U, _U, _U, _A, _A))
TRADING_IS_IN_OPEN_MAKE_ORDER = ContractFunction("isInOpenMakeOrder", (_A,), ("bool",))
TRADING_IS_ORDER_EXPIRED = ContractFunction("isOrderExpired", (_A, _A), ("bool",))
TRADING_ORDER_LIFESPAN = ContractFunction("ORDER_LIFESPAN", (), (_U,))
TRADING_MAKE_ORDER_COOLDOWN = ContractFunction("MAKE_ORDER_COOLDOWN", (), (_U,))
TRADING_MAKER_ASSET_COOLDOWN = ContractFunction("makerAssetCooldown", (_A,), (_U,))
TRADING_GET_ORDER_DETAILS = ContractFunction("getOrderDetails", (_U,), (_A, _A, _U, _U))
# state-changing in the contract; read through eth_call for the returned value
TRADING_QUANTITY_BEING_TRADED = ContractFunction("updateAndGetQuantityBeingTraded", (_A,), (_U,))
TRADING_QUANTITY_HELD_IN_EXCHANGE = ContractFunction("updateAndGetQuantityHeldInExchange", (_A,), (_U,))
# LibOrder.Order: maker, taker, feeRecipient, sender, makerAssetAmount, takerAssetAmount,
# makerFee, takerFee, expirationTimeSeconds, salt, makerAssetData, takerAssetData
_ZERO_EX_ORDER = "(" + ",".join((_A,) * 4 + (_U,) * 6 + ("bytes",) * 2) + ")"
TRADING_GET_ZERO_EX_ORDER_DETAILS = ContractFunction("getZeroExOrderDetails", ("bytes32",), (_ZERO_EX_ORDER,))
TRADING_CALL_ON_EXCHANGE = ContractFunction(
    "callOnExchange",
    (_U, "string", "address[8]", "uint256[8]", "bytes[4]", "bytes32", "bytes"),
)
TRADING_ADD_EXCHANGE = ContractFunction("addExchange", (_A, _A))
TRADING_RETURN_BATCH_TO_VAULT = ContractFunction("returnBatchToVault", ("address[]",))

# ---- Hub
HUB_MANAGER = ContractFunction("manager", (), (_A,))
HUB_IS_SHUT_DOWN = ContractFunction("isShutDown", (), ("bool",))
HUB_NAME = ContractFunction("name", (), ("string",))

# ---- Registry
REGISTRY_ASSET_IS_REGISTERED = ContractFunction("assetIsRegistered", (_A,), ("bool",))
REGISTRY_ADAPTER_METHOD_IS_ALLOWED = ContractFunction("adapterMethodIsAllowed", (_A, "bytes4"), ("bool",))
REGISTRY_EXCHANGE_ADAPTER_IS_REGISTERED = ContractFunction("exchangeAdapterIsRegistered", (_A,), ("bool",))
REGISTRY_EXCHANGE_INFORMATION = ContractFunction("exchangeInformation", (_A,), ("bool", _A, "bool"))
REGISTRY_GET_REGISTERED_ASSETS = ContractFunction("getRegisteredAssets", (), ("address[]",))

# ---- PolicyManager
_POLICY_ARGS = ("bytes4", "address[5]", "uint256[3]", "bytes32")
POLICY_PRE_VALIDATE = ContractFunction("preValidate", _POLICY_ARGS)
POLICY_POST_VALIDATE = ContractFunction("postValidate", _POLICY_ARGS)
POLICY_GET_POLICIES_BY_SIG = ContractFunction("getPoliciesBySig", ("bytes4",), ("address[]", "address[]"))

# ---- ERC20
ERC20_BALANCE_OF = ContractFunction("balanceOf", (_A,), (_U,))
