"""
Runtime system configuration: pricing constants and order limits.

The values are read by the pricing engine on every price calculation, so an
administrator's change takes effect immediately for every order.

File format (system_config.txt):
    # comments and blank lines are ignored
    electricity_cost_per_hour=0.15
    machine_time_cost_per_hour=2.5
    base_setup_cost=5.0
    tax_rate=0.08
    currency=USD
    max_order_quantity=100
    max_order_value=1000.0
    allow_rush_orders=true
    rush_order_surcharge=0.25

Thread Safety:
    SystemConfig guards its values with a lock. snapshot() returns a frozen
    PricingSettings so one price calculation sees one consistent set of
    values even if an administrator edits the configuration meanwhile.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Union

from core.exceptions import ConfigurationError, PersistenceError
from logging_config import get_logger


logger = get_logger(__name__)

VALID_KEY_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_]*$")
COMMENT_PREFIX = "#"
KEY_VALUE_SEPARATOR = "="


@dataclass(frozen=True)
class PricingSettings:
    """Immutable copy of the configuration used for one calculation."""

    electricity_cost_per_hour: float = 0.15
    machine_time_cost_per_hour: float = 2.50
    base_setup_cost: float = 5.00
    tax_rate: float = 0.08
    currency: str = "USD"
    max_order_quantity: int = 100
    max_order_value: float = 1000.00
    allow_rush_orders: bool = True
    rush_order_surcharge: float = 0.25

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


DEFAULTS = PricingSettings()


def _parse_bool(value: str) -> bool:
    # Anything other than "true" is false, like the legacy tool
    return value.strip().lower() == "true"


@dataclass
class ConfigLoadReport:
    """Outcome of applying a configuration file."""

    applied: List[str]
    rejected: Dict[str, str]

    @property
    def ok(self) -> bool:
        return not self.rejected

    def to_dict(self) -> Dict[str, Any]:
        return {"applied": list(self.applied), "rejected": dict(self.rejected), "ok": self.ok}


class SystemConfig:
    """
    Process-wide mutable configuration.

    Pass one instance to the services that need it (no module globals), so
    tests can build an isolated configuration per case.
    """

    # key -> (parser, validator, rule description)
    _RULES: Dict[str, tuple] = {
        "electricity_cost_per_hour": (float, lambda v: v >= 0, "must be >= 0"),
        "machine_time_cost_per_hour": (float, lambda v: v >= 0, "must be >= 0"),
        "base_setup_cost": (float, lambda v: v >= 0, "must be >= 0"),
        "tax_rate": (float, lambda v: 0 <= v <= 1, "must be between 0 and 1"),
        "currency": (lambda s: s.strip().upper(), lambda v: bool(v), "must not be blank"),
        "max_order_quantity": (int, lambda v: v > 0, "must be > 0"),
        "max_order_value": (float, lambda v: v > 0, "must be > 0"),
        "allow_rush_orders": (_parse_bool, lambda v: True, ""),
        "rush_order_surcharge": (float, lambda v: v >= 0, "must be >= 0"),
    }

    KEYS = tuple(_RULES.keys())

    def __init__(self, **overrides: Any):
        self._lock = threading.Lock()
        self._values: Dict[str, Any] = DEFAULTS.to_dict()
        for key, value in overrides.items():
            self.set(key, value)

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def snapshot(self) -> PricingSettings:
        with self._lock:
            return PricingSettings(**self._values)

    def get(self, key: str) -> Any:
        with self._lock:
            if key not in self._values:
                raise KeyError(key)
            return self._values[key]

    def set(self, key: str, value: Any) -> None:
        """
        Validate and store one value.

        Strings are parsed (so file values and typed values share one path).

        Raises:
            ConfigurationError: Unknown key, unparsable or out-of-range value
        """
        rule = self._RULES.get(key)
        if rule is None:
            raise ConfigurationError(key, value, "unknown configuration key")
        parser, validator, description = rule

        if isinstance(value, bool) and parser is not _parse_bool:
            raise ConfigurationError(key, value, "boolean is not a number")
        if parser is _parse_bool and not isinstance(value, (bool, str)):
            raise ConfigurationError(key, value, "expected true or false")
        if parser is int and isinstance(value, float) and not value.is_integer():
            raise ConfigurationError(key, value, "must be a whole number")

        try:
            parsed = value if isinstance(value, bool) else parser(value)
        except (AttributeError, TypeError, ValueError) as e:
            raise ConfigurationError(key, value, f"cannot parse ({e})") from e

        if not validator(parsed):
            raise ConfigurationError(key, value, description)

        with self._lock:
            self._values[key] = parsed
        logger.debug(f"Configuration {key} set to {parsed!r}")

    def update(self, values: Dict[str, Any]) -> ConfigLoadReport:
        """Apply several values; bad ones are reported, good ones still applied."""
        applied: List[str] = []
        rejected: Dict[str, str] = {}
        for key, value in values.items():
            try:
                self.set(key, value)
                applied.append(key)
            except ConfigurationError as e:
                logger.warning(str(e.message))
                rejected[key] = e.reason
        return ConfigLoadReport(applied=applied, rejected=rejected)

    def reset_to_defaults(self) -> None:
        with self._lock:
            self._values = DEFAULTS.to_dict()
        logger.info("Configuration reset to defaults")

    # ------------------------------------------------------------------
    # Convenience properties (read fresh every time)
    # ------------------------------------------------------------------

    @property
    def allow_rush_orders(self) -> bool:
        return self.get("allow_rush_orders")

    @property
    def max_order_quantity(self) -> int:
        return self.get("max_order_quantity")

    @property
    def max_order_value(self) -> float:
        return self.get("max_order_value")

    @property
    def currency(self) -> str:
        return self.get("currency")

    # ------------------------------------------------------------------
    # File handling
    # ------------------------------------------------------------------

    @staticmethod
    def parse_text(text: str) -> Dict[str, str]:
        """Parse key=value lines. Comments, blanks and bad keys are skipped."""
        parsed: Dict[str, str] = {}
        for line_number, raw in enumerate(text.splitlines(), start=1):
            line = raw.strip()
            if not line or line.startswith(COMMENT_PREFIX):
                continue
            if KEY_VALUE_SEPARATOR not in line:
                logger.warning(f"Config line {line_number} has no '=': {line!r}")
                continue
            key, value = line.split(KEY_VALUE_SEPARATOR, 1)
            key = key.strip()
            if not VALID_KEY_PATTERN.match(key):
                logger.warning(f"Invalid configuration key on line {line_number}: {key!r}")
                continue
            parsed[key] = value.strip()
        return parsed

    def render_text(self) -> str:
        """Render the configuration in the system_config.txt format."""
        s = self.snapshot()
        generated = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        return (
            "# System Configuration File\n"
            "# Format: key=value (one per line)\n"
            "# Lines starting with # are comments\n"
            f"# Generated: {generated}\n"
            "\n"
            "# PRICING CONSTANTS\n"
            f"electricity_cost_per_hour={s.electricity_cost_per_hour}\n"
            f"machine_time_cost_per_hour={s.machine_time_cost_per_hour}\n"
            f"base_setup_cost={s.base_setup_cost}\n"
            "\n"
            "# TAX & CURRENCY\n"
            f"tax_rate={s.tax_rate}\n"
            f"currency={s.currency}\n"
            "\n"
            "# ORDER LIMITS\n"
            f"max_order_quantity={s.max_order_quantity}\n"
            f"max_order_value={s.max_order_value}\n"
            "\n"
            "# RUSH ORDER SETTINGS\n"
            f"allow_rush_orders={str(s.allow_rush_orders).lower()}\n"
            f"rush_order_surcharge={s.rush_order_surcharge}\n"
        )

    def load_from_file(self, path: Union[str, Path]) -> ConfigLoadReport:
        """
        Apply a system_config.txt file.

        A missing file leaves the defaults in place and reports nothing
        applied. Unknown keys and bad values are logged and reported.
        """
        path = Path(path)
        if not path.exists():
            logger.info(f"Configuration file {path} not found, using current settings")
            return ConfigLoadReport(applied=[], rejected={})

        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Cannot read configuration file: {e}", str(path)) from e

        report = self.update(self.parse_text(text))
        logger.info(
            f"Loaded configuration from {path}: {len(report.applied)} applied, "
            f"{len(report.rejected)} rejected"
        )
        return report

    def save_to_file(self, path: Union[str, Path]) -> None:
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(self.render_text(), encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Cannot write configuration file: {e}", str(path)) from e
        logger.info(f"Configuration saved to {path}")

    def summary(self) -> str:
        """Human-readable summary for admin screens."""
        s = self.snapshot()
        return (
            "SYSTEM CONFIGURATION SUMMARY\n"
            "=============================\n"
            "\n"
            "PRICING CONSTANTS:\n"
            f"- Electricity Cost: ${s.electricity_cost_per_hour:.2f} per hour\n"
            f"- Machine Time Cost: ${s.machine_time_cost_per_hour:.2f} per hour\n"
            f"- Base Setup Cost: ${s.base_setup_cost:.2f}\n"
            "\n"
            "TAX & CURRENCY:\n"
            f"- Tax Rate: {s.tax_rate * 100:.1f}%\n"
            f"- Currency: {s.currency}\n"
            "\n"
            "ORDER LIMITS:\n"
            f"- Max Order Quantity: {s.max_order_quantity} items\n"
            f"- Max Order Value: ${s.max_order_value:.2f}\n"
            "\n"
            "RUSH ORDER SETTINGS:\n"
            f"- Rush Orders Allowed: {'Yes' if s.allow_rush_orders else 'No'}\n"
            f"- Rush Order Surcharge: {s.rush_order_surcharge * 100:.1f}%\n"
        )
