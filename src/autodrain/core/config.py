# src/autodrain/core/config.py

import logging
import os
import re

from dotenv import load_dotenv

# Load environment variables from a .env file located in the project root
dotenv_path = os.path.join(os.path.dirname(__file__), "..", "..", "..", ".env")
load_dotenv(dotenv_path=dotenv_path)

_DURATION_RE = re.compile(r"^(\d+)([smh])$")
_DURATION_MULTIPLIERS = {"s": 1, "m": 60, "h": 3600}


def parse_duration(value: str) -> int:
    """
    Converts a duration string like '5s', '10m' or '1h' into seconds.

    Raises:
        ValueError: If the string does not match the expected format.
    """
    match = _DURATION_RE.match(str(value).strip().lower())
    if not match:
        raise ValueError(f"Invalid duration format: '{value}'. Use 's', 'm', or 'h'.")

    amount, unit = int(match.group(1)), match.group(2)
    return amount * _DURATION_MULTIPLIERS[unit]


def _as_bool(value: str) -> bool:
    return str(value).lower() in ("true", "1", "t", "y", "yes")


class Config:
    """
    Handles the application's configuration by loading values from environment variables.
    """

    def __init__(self):
        # --- Kubernetes variables ---
        self.KUBECONFIG_CONTEXT = self._get_secret("KUBECONFIG_CONTEXT")

    @staticmethod
    def _get_secret(key: str, default: str = None) -> str:
        """
        Retrieves a secret from a file (mounted volume) or falls back to environment variable.

        Raises:
            PermissionError: If the secret file exists but cannot be read due to permissions.
            IOError: If the secret file exists but cannot be read due to I/O errors.
        """
        secret_file = f"/etc/autodrain/secrets/{key}"
        if os.path.exists(secret_file):
            try:
                with open(secret_file, "r") as f:
                    value = f.read().strip()
                    logging.getLogger(__name__).debug(f"Loaded secret '{key}' from {secret_file}")
                    return value
            except PermissionError as e:
                raise PermissionError(
                    f"Secret file '{secret_file}' exists but cannot be read due to permission denied. "
                    f"Please check file permissions or run with appropriate privileges."
                ) from e
            except (IOError, OSError) as e:
                raise IOError(
                    f"Secret file '{secret_file}' exists but cannot be read: {e}. "
                    f"Please check the file integrity and system resources."
                ) from e
        return os.getenv(key, default)

    # --- Logging variables ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # --- Drain variables ---
    # Resolved at access time so tests and the CLI can override them through
    # the environment after import.
    @property
    def DRAIN_POLL_INTERVAL(self) -> str:
        return os.getenv("DRAIN_POLL_INTERVAL", "5s")

    @property
    def DRAIN_TIMEOUT(self) -> str:
        return os.getenv("DRAIN_TIMEOUT", "10m")

    @property
    def DAEMONSET_MATCH_NAMESPACE(self) -> bool:
        return _as_bool(os.getenv("DAEMONSET_MATCH_NAMESPACE", "True"))

    @property
    def drain_poll_interval_seconds(self) -> int:
        return parse_duration(self.DRAIN_POLL_INTERVAL)

    @property
    def drain_timeout_seconds(self) -> int:
        return parse_duration(self.DRAIN_TIMEOUT)

    def validate_instance(self):
        poll_interval = parse_duration(self.DRAIN_POLL_INTERVAL)
        timeout = parse_duration(self.DRAIN_TIMEOUT)
        if poll_interval <= 0:
            raise ValueError("DRAIN_POLL_INTERVAL must be greater than zero.")
        if timeout < poll_interval:
            raise ValueError("DRAIN_TIMEOUT must not be shorter than DRAIN_POLL_INTERVAL.")
        if self.LOG_LEVEL.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            logging.warning("Unknown LOG_LEVEL '%s', logging may fall back to defaults.", self.LOG_LEVEL)


# Instantiate the config to be imported by other modules
config = Config()
config.validate_instance()
