"""
Authority factories backed by an object cache.

A factory turns codes of one authority (e.g. "EPSG") into objects.
CachedAuthorityFactory routes every request through its ObjectCache,
so repeated and concurrent requests for a code share one instance.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Set
import logging

from ..config import DEFAULT_AUTHORITY, DEFAULT_CACHE_CONFIG, CacheConfig
from ..projection.base import MapProjection
from ..projection.factory import create_projection
from .definitions import BUILTIN_DEFINITIONS, ProjectionDefinition
from .object_cache import FactoryError, ObjectCache, cache_from_config, to_key

logger = logging.getLogger(__name__)


class NoSuchAuthorityCodeError(FactoryError, KeyError):
    """Raised when a code is not known to the authority."""

    def __init__(self, authority: str, code: str):
        super().__init__(f"No code {code!r} in authority {authority}")
        self.authority = authority
        self.code = code

    def __str__(self) -> str:
        return str(self.args[0])


class CachedAuthorityFactory(ABC):
    """
    Base class of cached authority factories.

    Subclasses name their authority, list their codes and build one
    object per code; caching and thread safety are handled here.

    Attributes:
        config: Cache configuration
        cache: ObjectCache holding the built objects
    """

    def __init__(self, config: Optional[CacheConfig] = None, cache: Optional[ObjectCache] = None):
        """
        Initialize the factory.

        Args:
            config: Cache configuration (default: DEFAULT_CACHE_CONFIG)
            cache: Cache to use instead of one built from config
        """
        self.config = config or DEFAULT_CACHE_CONFIG
        self.cache = cache if cache is not None else cache_from_config(self.config)

    @property
    @abstractmethod
    def authority(self) -> str:
        """Name of the authority, e.g. "EPSG"."""
        pass

    @abstractmethod
    def get_authority_codes(self) -> Set[str]:
        """Return every code this factory can build."""
        pass

    @abstractmethod
    def generate_object(self, code: str) -> Any:
        """
        Build the object of a code, bypassing the cache.

        Raises:
            NoSuchAuthorityCodeError: If the code is unknown
        """
        pass

    def create_object(self, code: Any) -> Any:
        """
        Return the object of a code, building it at most once.

        Args:
            code: Code, bare ("3395") or qualified ("EPSG:3395")

        Raises:
            NoSuchAuthorityCodeError: If the code is unknown
            CacheConstructionError: If building the object failed
            FactoryUnavailableError: If the factory was disposed
        """
        return self.cache.get_or_create(to_key(self.authority, code), self._generate)

    def _generate(self, key: str) -> Any:
        code = key.partition(':')[2]
        logger.debug(f"Building {self.authority}:{code}")
        return self.generate_object(code)

    def create_projection(self, code: Any) -> MapProjection:
        """
        Return the projection of a code.

        Raises:
            FactoryError: If the code does not describe a projection
        """
        obj = self.create_object(code)
        if not isinstance(obj, MapProjection):
            raise FactoryError(
                f"{to_key(self.authority, code)} is a {type(obj).__name__}, not a projection"
            )
        return obj

    def is_available(self) -> bool:
        """Whether the factory can still serve requests."""
        return not self.cache.disposed

    def dispose(self) -> None:
        """Release the cached objects; later requests raise FactoryUnavailableError."""
        self.cache.dispose()


class ProjectionAuthorityFactory(CachedAuthorityFactory):
    """
    Authority factory building projections from a definition table.

    Attributes:
        definitions: Code -> ProjectionDefinition
        verify: Round-trip check flag passed to every projection
    """

    def __init__(
        self,
        definitions: Optional[Mapping[Any, ProjectionDefinition]] = None,
        authority: str = DEFAULT_AUTHORITY,
        config: Optional[CacheConfig] = None,
        verify: Optional[bool] = None
    ):
        super().__init__(config)
        if definitions is None:
            definitions = BUILTIN_DEFINITIONS
        self.definitions = {str(code).strip(): d for code, d in definitions.items()}
        self._authority = authority.strip().upper()
        self.verify = verify

    @property
    def authority(self) -> str:
        return self._authority

    def get_authority_codes(self) -> Set[str]:
        return set(self.definitions)

    def get_description_text(self, code: Any) -> str:
        """
        Return the name of a code.

        Raises:
            NoSuchAuthorityCodeError: If the code is unknown
        """
        return self._definition(to_key(self.authority, code).partition(':')[2]).name

    def generate_object(self, code: str) -> MapProjection:
        definition = self._definition(code)
        return create_projection(definition.method, definition.parameters, verify=self.verify)

    def _definition(self, code: str) -> ProjectionDefinition:
        definition = self.definitions.get(code)
        if definition is None:
            raise NoSuchAuthorityCodeError(self.authority, code)
        return definition
