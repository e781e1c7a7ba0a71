"""Helper modules for the print shop order manager."""

__all__ = [
    "estimator",
    "order_codec",
    "pricing",
    "system_config",
]
