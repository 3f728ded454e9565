"""Credentials and client configuration for kswift."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Mapping, Optional

from .exceptions import ConfigError

DEFAULT_TIMEOUT = 60.0
DEFAULT_REFRESH_MARGIN = timedelta(hours=1)
DEFAULT_USER_AGENT = "kswift/0.1.0"


class RefreshPolicy(str, Enum):
    """What a caller does when another thread is already refreshing the token."""

    WAIT = "wait"
    FAIL_OPEN = "fail-open"


@dataclass(frozen=True)
class Credentials:
    """Keystone v2 password credentials for one tenant."""

    username: str
    password: str = field(repr=False)
    tenant_name: str
    auth_url: str
    region: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Credentials":
        """
        Build credentials from the usual OpenStack environment variables.

        Reads ``OS_USERNAME``, ``OS_PASSWORD``, ``OS_PROJECT_NAME`` (or
        ``OS_TENANT_NAME``), ``OS_AUTH_URL`` and the optional
        ``OS_REGION_NAME``.

        Raises:
            ConfigError: If any required variable is unset or empty.
        """
        env = os.environ if environ is None else environ

        values = {
            "username": env.get("OS_USERNAME"),
            "password": env.get("OS_PASSWORD"),
            "tenant_name": env.get("OS_PROJECT_NAME") or env.get("OS_TENANT_NAME"),
            "auth_url": env.get("OS_AUTH_URL"),
        }
        names = {
            "username": "OS_USERNAME",
            "password": "OS_PASSWORD",
            "tenant_name": "OS_PROJECT_NAME",
            "auth_url": "OS_AUTH_URL",
        }
        missing = [names[key] for key, value in values.items() if not value]
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        return cls(region=env.get("OS_REGION_NAME") or None, **values)


@dataclass
class ClientConfig:
    """Tuning knobs for SwiftClient."""

    timeout: float = DEFAULT_TIMEOUT  # seconds, per transport request
    refresh_margin: timedelta = DEFAULT_REFRESH_MARGIN
    refresh_policy: RefreshPolicy = RefreshPolicy.WAIT
    lock_timeout: Optional[float] = None  # seconds; None waits forever
    user_agent: str = DEFAULT_USER_AGENT
