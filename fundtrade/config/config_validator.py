"""
Configuration validation module.

- Required fields and address well-formedness
- Range checks for numeric parameters
- Dependency validation (a sender must be derivable)
- Warnings for risky configurations
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Tuple

from fundtrade.core.utils import is_valid_address

logger = logging.getLogger(__name__)


class ValidationSeverity(Enum):
    """Severity levels for validation issues."""
    ERROR = auto()    # Blocks startup
    WARNING = auto()  # Logs warning but allows startup
    INFO = auto()     # Informational only


@dataclass
class ValidationIssue:
    """A single validation issue."""
    field: str
    message: str
    severity: ValidationSeverity
    value: Any = None
    suggestion: Optional[str] = None

    def render(self) -> str:
        text = f"CONFIG {self.severity.name}: {self.message}"
        return f"{text} (suggestion: {self.suggestion})" if self.suggestion else text


@dataclass
class ValidationResult:
    """Result of config validation."""
    valid: bool
    issues: List[ValidationIssue] = field(default_factory=list)

    def has_errors(self) -> bool:
        return any(i.severity == ValidationSeverity.ERROR for i in self.issues)

    def has_warnings(self) -> bool:
        return any(i.severity == ValidationSeverity.WARNING for i in self.issues)

    def get_errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.ERROR]

    def get_warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.WARNING]


class ConfigValidator:
    """
    Validates Settings before any network call is made.
    """

    # Range definitions: (min, max, default_if_missing)
    NUMERIC_RANGES: Dict[str, Tuple[float, float, Optional[float]]] = {
        "http_timeout": (0.5, 120.0, 10.0),
        "gas_multiplier": (1.0, 5.0, 1.2),
        "receipt_timeout": (1.0, 3600.0, 120.0),
        "receipt_poll_sec": (0.05, 60.0, 1.0),
        "metrics_port": (0, 65535, 0),
    }

    REQUIRED_STRINGS: List[str] = [
        "rpc_url",
        "trading_address",
    ]

    ADDRESS_FIELDS: List[str] = [
        "trading_address",
        "sender_address",
    ]

    def validate(self, cfg) -> ValidationResult:
        issues: List[ValidationIssue] = []
        issues.extend(self._validate_required_strings(cfg))
        issues.extend(self._validate_addresses(cfg))
        issues.extend(self._validate_numeric_ranges(cfg))
        issues.extend(self._validate_sender(cfg))
        issues.extend(self._validate_adapters(cfg))
        issues.extend(self._check_risky_configs(cfg))

        has_errors = any(i.severity == ValidationSeverity.ERROR for i in issues)
        return ValidationResult(valid=not has_errors, issues=issues)

    def _validate_required_strings(self, cfg) -> List[ValidationIssue]:
        issues = []
        for field_name in self.REQUIRED_STRINGS:
            value = getattr(cfg, field_name, None)
            if not value or (isinstance(value, str) and not value.strip()):
                issues.append(ValidationIssue(
                    field=field_name,
                    message=f"Required field '{field_name}' is missing or empty",
                    severity=ValidationSeverity.ERROR,
                    value=value,
                ))
        return issues

    def _validate_addresses(self, cfg) -> List[ValidationIssue]:
        issues = []
        for field_name in self.ADDRESS_FIELDS:
            value = getattr(cfg, field_name, None)
            if value and not is_valid_address(value):
                issues.append(ValidationIssue(
                    field=field_name,
                    message=f"'{field_name}' is not a valid address: {value}",
                    severity=ValidationSeverity.ERROR,
                    value=value,
                ))
        return issues

    def _validate_numeric_ranges(self, cfg) -> List[ValidationIssue]:
        issues = []
        for name, (low, high, default) in self.NUMERIC_RANGES.items():
            raw = getattr(cfg, name, None)
            if raw is None:
                if default is None:
                    issues.append(ValidationIssue(name, f"Required numeric field '{name}' is missing",
                                                  ValidationSeverity.ERROR))
                continue
            try:
                value = float(raw)
            except (TypeError, ValueError):
                issues.append(ValidationIssue(name, f"'{name}' is not a number: {raw!r}",
                                              ValidationSeverity.ERROR, raw))
                continue
            if not low <= value <= high:
                issues.append(ValidationIssue(
                    name,
                    f"'{name}' = {value} outside [{low}, {high}]",
                    ValidationSeverity.ERROR,
                    value,
                    suggestion=f"Set {name} between {low} and {high}",
                ))
        return issues

    def _validate_sender(self, cfg) -> List[ValidationIssue]:
        private_key = getattr(cfg, "private_key", None)
        sender = getattr(cfg, "sender_address", None)
        if not private_key and not sender:
            return [ValidationIssue(
                field="sender_address",
                message="No sender configured (private_key or sender_address)",
                severity=ValidationSeverity.ERROR,
                suggestion="Set FUND_PRIVATE_KEY or FUND_SENDER_ADDRESS",
            )]
        if sender and not private_key:
            return [ValidationIssue(
                field="private_key",
                message="No private key: transactions will be sent through the node's eth_sendTransaction",
                severity=ValidationSeverity.INFO,
            )]
        return []

    def _validate_adapters(self, cfg) -> List[ValidationIssue]:
        issues = []
        adapters = getattr(cfg, "adapters", None) or {}
        if not adapters:
            issues.append(ValidationIssue(
                field="adapters",
                message="No protocol adapters configured",
                severity=ValidationSeverity.WARNING,
                suggestion="Set FUND_ADAPTERS, e.g. OasisDex=0x...,ZeroExV3=0x...",
            ))
        for adapter, protocol in adapters.items():
            if not is_valid_address(adapter):
                issues.append(ValidationIssue(
                    field="adapters",
                    message=f"Adapter address for {protocol} is not a valid address: {adapter}",
                    severity=ValidationSeverity.ERROR,
                    value=adapter,
                ))
        return issues

    def _check_risky_configs(self, cfg) -> List[ValidationIssue]:
        issues = []
        gas_multiplier = getattr(cfg, "gas_multiplier", 1.2)
        if gas_multiplier > 2.0:
            issues.append(ValidationIssue(
                field="gas_multiplier",
                message=f"High gas multiplier ({gas_multiplier}x) overpays for every transaction",
                severity=ValidationSeverity.WARNING,
                value=gas_multiplier,
            ))
        block_tag = getattr(cfg, "block_tag", "latest")
        if block_tag == "pending":
            issues.append(ValidationIssue(
                field="block_tag",
                message="Reading at 'pending' judges trades against unconfirmed state",
                severity=ValidationSeverity.WARNING,
                value=block_tag,
            ))
        rpc_url = getattr(cfg, "rpc_url", "") or ""
        if rpc_url.startswith("http://") and "127.0.0.1" not in rpc_url and "localhost" not in rpc_url:
            issues.append(ValidationIssue(
                field="rpc_url",
                message="RPC endpoint is not using TLS",
                severity=ValidationSeverity.WARNING,
                value=rpc_url,
            ))
        return issues


def validate_config(cfg) -> ValidationResult:
    validator = ConfigValidator()
    return validator.validate(cfg)


def validate_and_log(cfg, logger_instance=None) -> bool:
    """
    Validate config and log all issues.

    Returns:
        True if config is valid (no errors), False otherwise
    """
    log = logger_instance or logger
    result = validate_config(cfg)
    for issue in result.get_errors():
        log.error(issue.render())
    for issue in result.get_warnings():
        log.warning(issue.render())
    if result.valid:
        log.info("Configuration validation passed")
    else:
        log.error(f"Configuration validation failed with {len(result.get_errors())} error(s)")
    return result.valid
