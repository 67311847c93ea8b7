from fundtrade.risk.policy_gateway import PolicyArgs, PolicyGateway, PolicyPhase, PolicyVerdict
from fundtrade.risk.validation import ValidationPass, ValidationPipeline

__all__ = [
    "PolicyArgs",
    "PolicyGateway",
    "PolicyPhase",
    "PolicyVerdict",
    "ValidationPass",
    "ValidationPipeline",
]
