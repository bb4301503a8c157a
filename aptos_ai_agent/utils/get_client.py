# -*- coding: utf-8 -*-
"""Centralized Aptos client factory built from environment settings."""

from __future__ import annotations

from typing import Optional

from aptos_ai_agent.utils.aptos_client import AptosClient
from aptos_ai_agent.utils.config import Settings, load_settings
from aptos_ai_agent.utils.logger import get_logger

LOGGER = get_logger(__name__)

_client: Optional[AptosClient] = None


def _create_client(settings: Optional[Settings] = None) -> AptosClient:
    """Instantiate a fresh client with the current configuration."""
    settings = settings or load_settings()
    client = AptosClient(settings.node_url, private_key=settings.private_key)
    LOGGER.info("Aptos client ready (node=%s, signer=%s)", settings.node_url, client.address or "none")
    return client


def get_client(settings: Optional[Settings] = None) -> AptosClient:
    """Return a cached client instance."""
    global _client
    if _client is None:
        _client = _create_client(settings)
    return _client


def refresh_client(settings: Optional[Settings] = None) -> AptosClient:
    """Force creation of a new client (e.g., after a key change)."""
    global _client
    _client = _create_client(settings)
    return _client


__all__ = ["get_client", "refresh_client"]
