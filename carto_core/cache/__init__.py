"""
Cache module for carto_core.

Thread-safe object caches and the authority factories built on them.
"""

from .object_cache import (
    FactoryError,
    CacheConstructionError,
    FactoryUnavailableError,
    CacheLockTimeoutError,
    ObjectCache,
    DefaultObjectCache,
    NullObjectCache,
    WeakObjectCache,
    create_cache,
    cache_from_config,
    to_key,
)
from .authority_factory import (
    NoSuchAuthorityCodeError,
    CachedAuthorityFactory,
    ProjectionAuthorityFactory,
)
from .definitions import ProjectionDefinition, BUILTIN_DEFINITIONS

__all__ = [
    'FactoryError',
    'CacheConstructionError',
    'FactoryUnavailableError',
    'CacheLockTimeoutError',
    'ObjectCache',
    'DefaultObjectCache',
    'NullObjectCache',
    'WeakObjectCache',
    'create_cache',
    'cache_from_config',
    'to_key',
    'NoSuchAuthorityCodeError',
    'CachedAuthorityFactory',
    'ProjectionAuthorityFactory',
    'ProjectionDefinition',
    'BUILTIN_DEFINITIONS',
]
