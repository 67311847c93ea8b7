"""
Exchange adapters, one per supported protocol.
"""

from typing import Dict, Type, Union

from fundtrade.adapters.amm import KyberNetworkAdapter, SwapAdapter, UniswapAdapter
from fundtrade.adapters.base import CheckId, ExchangeAdapter, ExchangeProtocol
from fundtrade.adapters.melon_engine import MelonEngineAdapter
from fundtrade.adapters.oasis_dex import OasisDexAdapter
from fundtrade.adapters.zero_ex import ZeroExV2Adapter, ZeroExV3Adapter
from fundtrade.core.types import ExchangeRegistration

ADAPTERS: Dict[ExchangeProtocol, Type[ExchangeAdapter]] = {
    ExchangeProtocol.OASIS_DEX: OasisDexAdapter,
    ExchangeProtocol.ZERO_EX_V2: ZeroExV2Adapter,
    ExchangeProtocol.ZERO_EX_V3: ZeroExV3Adapter,
    ExchangeProtocol.UNISWAP: UniswapAdapter,
    ExchangeProtocol.KYBER_NETWORK: KyberNetworkAdapter,
    ExchangeProtocol.MELON_ENGINE: MelonEngineAdapter,
}


def adapter_for(
    protocol: Union[ExchangeProtocol, str],
    registration: ExchangeRegistration,
    trading: str,
) -> ExchangeAdapter:
    if not isinstance(protocol, ExchangeProtocol):
        protocol = ExchangeProtocol(protocol)
    return ADAPTERS[protocol](registration, trading)


__all__ = [
    "ADAPTERS",
    "CheckId",
    "ExchangeAdapter",
    "ExchangeProtocol",
    "KyberNetworkAdapter",
    "MelonEngineAdapter",
    "OasisDexAdapter",
    "SwapAdapter",
    "UniswapAdapter",
    "ZeroExV2Adapter",
    "ZeroExV3Adapter",
    "adapter_for",
]
