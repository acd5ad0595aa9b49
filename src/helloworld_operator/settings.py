"""Operator settings loaded from the environment."""

import os
from dataclasses import dataclass

DEFAULT_NAMESPACE = "default"
DEFAULT_RESOURCE_NAME = "hello-world-example"
DEFAULT_BOOTSTRAP_DELAY = 10.0

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class OperatorSettings:
    namespace: str = DEFAULT_NAMESPACE
    resource_name: str = DEFAULT_RESOURCE_NAME
    bootstrap_delay: float = DEFAULT_BOOTSTRAP_DELAY
    serialize_bootstrap: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ=None):
        """Build settings from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ

        delay_raw = env.get("BOOTSTRAP_DELAY_SECONDS", str(DEFAULT_BOOTSTRAP_DELAY))
        try:
            delay = float(delay_raw)
        except ValueError:
            raise ValueError(f"BOOTSTRAP_DELAY_SECONDS must be a number, got {delay_raw!r}")
        if delay < 0:
            raise ValueError(f"BOOTSTRAP_DELAY_SECONDS must be non-negative, got {delay}")

        return cls(
            namespace=env.get("OPERATOR_NAMESPACE", DEFAULT_NAMESPACE),
            resource_name=env.get("HELLOWORLD_RESOURCE", DEFAULT_RESOURCE_NAME),
            bootstrap_delay=delay,
            serialize_bootstrap=env.get("BOOTSTRAP_SERIALIZE", "false").strip().lower() in _TRUE_VALUES,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )
