"""
Provider Registry

In-memory index of the providers a plugin was initialized with.
"""

from __future__ import annotations

import logging
from typing import Dict, Generic, List, Type, TypeVar

from .errors import ProviderNotFoundError


logger = logging.getLogger(__name__)

P = TypeVar("P")

ALL_NETWORKS = "*"


class ProviderRegistry(Generic[P]):
    """
    Registry of providers for one plugin family.

    The family's base class is fixed at construction and checked when a
    provider is registered, so a misconfigured provider fails at startup
    instead of halfway through a tool call. Registering a second provider
    under an existing name replaces the first.

    Usage:
        registry = ProviderRegistry(BaseSwapProvider)
        registry.register_provider(my_provider)
        providers = registry.get_providers_by_network("bnb")
    """

    def __init__(self, provider_type: Type[P]):
        self.provider_type = provider_type
        self._providers: Dict[str, P] = {}

    def register_provider(self, provider: P) -> None:
        if not isinstance(provider, self.provider_type):
            raise TypeError(
                f"{type(provider).__name__} is not a {self.provider_type.__name__}"
            )
        networks = provider.get_supported_networks()  # type: ignore[attr-defined]
        if not networks:
            raise ValueError(f"Provider {provider.get_name()} declares no supported networks")  # type: ignore[attr-defined]

        name = provider.get_name()  # type: ignore[attr-defined]
        if name in self._providers:
            logger.warning(f"Replacing already registered provider {name}")
        self._providers[name] = provider
        logger.info(f"Registered provider {name} for networks: {', '.join(networks)}")

    def get_provider(self, name: str) -> P:
        provider = self._providers.get(name)
        if provider is None:
            raise ProviderNotFoundError(name, available=self._providers.keys())
        return provider

    def has_provider(self, name: str) -> bool:
        return name in self._providers

    def get_provider_names(self) -> List[str]:
        return list(self._providers.keys())

    def get_providers(self) -> List[P]:
        return list(self._providers.values())

    def get_providers_by_network(self, network: str) -> List[P]:
        if network == ALL_NETWORKS:
            return self.get_providers()
        return [
            provider
            for provider in self._providers.values()
            if network in provider.get_supported_networks()  # type: ignore[attr-defined]
        ]

    def get_supported_networks(self) -> List[str]:
        networks: List[str] = []
        for provider in self._providers.values():
            for network in provider.get_supported_networks():  # type: ignore[attr-defined]
                if network not in networks:
                    networks.append(network)
        return networks

    def __len__(self) -> int:
        return len(self._providers)
