"""
Cache utilities for the restaurant POS platform.

Stock views are derived data; they are cached per organization and dropped
whenever a ledger row changes.
"""

import hashlib
from typing import Optional, Union

from django.core.cache import caches
from django.db.models import Model
from django.utils.encoding import force_bytes


def get_cache_key(prefix: str, *args, **kwargs) -> str:
    """
    Generate a cache key from prefix and arguments.

    Args:
        prefix: Cache key prefix
        *args: Positional arguments to include in key
        **kwargs: Keyword arguments to include in key

    Returns:
        str: Generated cache key
    """
    key_parts = [prefix]

    for arg in args:
        if isinstance(arg, Model):
            key_parts.append(str(arg.pk))
        else:
            key_parts.append(str(arg))

    for key, value in sorted(kwargs.items()):
        key_parts.append(f"{key}={value}")

    key_string = ":".join(key_parts)
    key_hash = hashlib.md5(force_bytes(key_string)).hexdigest()

    return f"{prefix}:{key_hash}"


def get_org_cache_key(organization_id: Union[str, int], prefix: str, *args, **kwargs) -> str:
    """Generate an organization-specific cache key."""
    return get_cache_key(f"org:{organization_id}:{prefix}", *args, **kwargs)


def invalidate_cache(key_pattern: str, cache_alias: str = "default"):
    """
    Invalidate cache keys matching a pattern.

    django-redis supports delete_pattern; other backends are cleared entirely.
    """
    cache = caches[cache_alias]

    if hasattr(cache, "delete_pattern"):
        cache.delete_pattern(key_pattern)
    else:
        cache.clear()


def invalidate_org_cache(
    organization_id: Union[str, int],
    prefix: Optional[str] = None,
    cache_alias: str = "default",
):
    """
    Invalidate all cache entries for an organization.

    Usage:
        invalidate_org_cache(org_id)
        invalidate_org_cache(org_id, prefix="stock")
    """
    if prefix:
        pattern = f"*org:{organization_id}:{prefix}*"
    else:
        pattern = f"*org:{organization_id}*"

    invalidate_cache(pattern, cache_alias)
