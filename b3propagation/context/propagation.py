"""Carrier capabilities consumed by the propagation codecs.

A carrier is anything that holds string values under keys: HTTP headers,
message attributes, a plain dict. Codecs never touch carriers directly; they
go through a ``Getter`` or ``Setter`` supplied by the caller, and use keys
created once by a ``KeyFactory``.
"""

from __future__ import annotations

from typing import Any, Generic, MutableMapping, Optional, Tuple, TypeVar

C = TypeVar("C")
K = TypeVar("K")


class Getter(Generic[C, K]):
    """Reads a single value from a carrier."""

    def get(self, carrier: C, key: K) -> Optional[str]:
        """
        Return the value stored under ``key``, or None when absent.

        Args:
            carrier: Carrier to read from
            key: Key created by the propagation's KeyFactory
        """
        raise NotImplementedError


class Setter(Generic[C, K]):
    """Writes a single value to a carrier."""

    def put(self, carrier: C, key: K, value: str) -> None:
        raise NotImplementedError


class KeyFactory(Generic[K]):
    """Creates carrier keys from field names, once per propagation."""

    def create(self, name: str) -> K:
        raise NotImplementedError


class StringKeyFactory(KeyFactory[str]):
    """Uses field names as-is."""

    def create(self, name: str) -> str:
        return name


class LowerCaseKeyFactory(KeyFactory[str]):
    """Lower-cases field names, as required by HTTP/2 and gRPC metadata."""

    def create(self, name: str) -> str:
        return name.lower()


STRING_KEYS = StringKeyFactory()
LOWER_CASE_KEYS = LowerCaseKeyFactory()


class MappingGetter(Getter[Any, str]):
    """Reads from a mapping with exact key matching."""

    def get(self, carrier: Any, key: str) -> Optional[str]:
        return carrier.get(key)


class MappingSetter(Setter[MutableMapping[str, str], str]):
    """Writes into a mutable mapping."""

    def put(self, carrier: MutableMapping[str, str], key: str, value: str) -> None:
        carrier[key] = value


class Propagation(Generic[K]):
    """
    Injects and extracts a trace context using a fixed set of carrier keys.

    Subclasses hand out injectors and extractors bound to a setter or getter;
    both are reused across calls.
    """

    def keys(self) -> Tuple[K, ...]:
        """Return every key this propagation may read or write."""
        raise NotImplementedError

    def injector(self, setter: Setter[C, K]) -> Any:
        raise NotImplementedError

    def extractor(self, getter: Getter[C, K]) -> Any:
        raise NotImplementedError


class PropagationFactory:
    """Creates a Propagation for a given KeyFactory."""

    def create(self, key_factory: KeyFactory[K]) -> Propagation[K]:
        raise NotImplementedError

    @property
    def supports_join(self) -> bool:
        """Whether a server may reuse the client's span ID."""
        return False
