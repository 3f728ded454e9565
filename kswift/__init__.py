"""
kswift - Python client for OpenStack Swift object storage behind Keystone v2
"""

from .client import SwiftClient
from .config import ClientConfig, Credentials, RefreshPolicy
from .exceptions import (
    AuthError,
    ConfigError,
    ContentError,
    CoordinationError,
    DecodingError,
    EncodingError,
    ExpiryParseError,
    RegionNotFoundError,
    SwiftError,
    TransportError,
)
from .operations import Format, GetAccount, GetContainer, GetObject, HeadAccount, PostAccount, PutObject
from .session import Authorization, SessionManager, StaticAuth

__version__ = "0.1.0"
__all__ = [
    "SwiftClient",
    "ClientConfig",
    "Credentials",
    "RefreshPolicy",
    "SessionManager",
    "StaticAuth",
    "Authorization",
    "Format",
    "HeadAccount",
    "GetAccount",
    "PostAccount",
    "GetContainer",
    "GetObject",
    "PutObject",
    "SwiftError",
    "TransportError",
    "ConfigError",
    "AuthError",
    "EncodingError",
    "DecodingError",
    "ContentError",
    "RegionNotFoundError",
    "ExpiryParseError",
    "CoordinationError",
]
