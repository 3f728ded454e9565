"""Service catalog helpers: pick the object-store endpoint for a region."""

from __future__ import annotations

import logging
from typing import Any, Optional

from .exceptions import ContentError, RegionNotFoundError

logger = logging.getLogger(__name__)

OBJECT_STORE_TYPE = "object-store"


def find_key(obj: Any, key: str) -> Any:
    """Return ``obj[key]``, raising ContentError if obj is not a dict or lacks key."""
    if not isinstance(obj, dict):
        logger.error("Expected an object while looking up %s, got %s", key, type(obj).__name__)
        raise ContentError(f"Expected an object while looking up {key}, got {type(obj).__name__}")
    if key not in obj:
        logger.debug("Key not found %s", key)
        raise ContentError(f"Key not found: {key}")
    return obj[key]


def find_string(obj: Any, key: str) -> str:
    value = find_key(obj, key)
    if not isinstance(value, str):
        raise ContentError(f"Expected a string for key: {key}")
    return value


def resolve_endpoint(endpoints: Any, region: Optional[str] = None) -> str:
    """
    Select a public URL from a service's endpoint list.

    With a region, the first endpoint whose ``region`` matches exactly wins;
    endpoints without a usable ``region`` or ``publicURL`` are skipped.
    Without a region, the first endpoint is used.

    Raises:
        ContentError: If there are no endpoints or the chosen one has no URL.
        RegionNotFoundError: If no endpoint matches ``region``.
    """
    if not isinstance(endpoints, list):
        logger.error("No endpoints found")
        raise ContentError("No endpoints found")

    if region is not None:
        for endpoint in endpoints:
            if not isinstance(endpoint, dict):
                continue
            endpoint_region = endpoint.get("region")
            public_url = endpoint.get("publicURL")
            if not isinstance(endpoint_region, str) or not isinstance(public_url, str):
                continue
            if endpoint_region == region:
                return public_url
        logger.error("No region matching '%s' located", region)
        raise RegionNotFoundError(region)

    if not endpoints:
        logger.error("No endpoint for storage-url found")
        raise ContentError("No endpoint for storage-url found")
    return find_string(endpoints[0], "publicURL")


def find_object_store(catalog: Any, region: Optional[str] = None) -> str:
    """Resolve the storage URL from the first ``object-store`` entry of a catalog."""
    if not isinstance(catalog, list):
        raise ContentError("Expected a list for key: serviceCatalog")

    for service in catalog:
        if find_key(service, "type") == OBJECT_STORE_TYPE:
            return resolve_endpoint(service.get("endpoints"), region)

    logger.error("Failed to find object-store in catalogue")
    raise ContentError("Failed to find object-store in catalogue")
