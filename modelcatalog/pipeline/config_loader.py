"""Configuration loader for catalog sources.

Builds the built-in source set from ``AppConfig`` or loads an explicit list
from YAML. Source classes are looked up by type in a registry populated by
the ``register_source`` decorator.

Example YAML::

    sources:
      - name: openrouter
        type: openrouter
        enabled: true
        config:
          url: https://openrouter.ai/api/v1/models
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

if TYPE_CHECKING:
    from modelcatalog.config import AppConfig
    from modelcatalog.pipeline.base_source import BaseSource
    from modelcatalog.pipeline.retry import RetryingFetcher

logger = logging.getLogger(__name__)


# Source registry (maps type to class)
SOURCE_REGISTRY: dict[str, type[BaseSource]] = {}


def register_source(source_type: str):
    """Decorator to register source classes.

    Usage:
        @register_source("openrouter")
        class OpenRouterSource(BaseSource):
            ...
    """

    def decorator(cls):
        SOURCE_REGISTRY[source_type] = cls
        return cls

    return decorator


def _ensure_registered() -> None:
    # Built-in sources register themselves on import
    import modelcatalog.pipeline.sources  # noqa: F401


def default_source_configs(config: AppConfig) -> list[dict[str, Any]]:
    """The four built-in catalogs with URLs from ``config.endpoints``."""
    endpoints = config.endpoints
    return [
        {"name": "models.dev", "type": "models_dev", "config": {"url": endpoints.models_dev_url}},
        {"name": "openrouter", "type": "openrouter", "config": {"url": endpoints.openrouter_url}},
        {"name": "huggingface", "type": "huggingface", "config": {"url": endpoints.huggingface_url}},
        {
            "name": "artificialanalysis",
            "type": "artificial_analysis",
            "config": {"url": endpoints.artificial_analysis_url},
        },
    ]


def build_sources(
    source_configs: list[dict[str, Any]],
    fetcher: RetryingFetcher | None = None,
    timeout_seconds: float = 30.0,
) -> list[BaseSource]:
    """Instantiate enabled sources, logging and skipping invalid entries."""
    _ensure_registered()
    sources = []

    for source_config in source_configs:
        if not source_config.get("enabled", True):
            logger.info(f"Skipping disabled source: {source_config.get('name')}")
            continue

        try:
            source = _create_source(source_config, fetcher, timeout_seconds)
            sources.append(source)
            logger.info(f"Loaded source: {source.source_name} ({source_config['type']})")

        except Exception as e:
            logger.error(f"Failed to load source {source_config.get('name')}: {e}")
            continue

    logger.info(f"Loaded {len(sources)} sources")

    return sources


def load_sources_config(config_path: Path) -> list[dict[str, Any]]:
    """Read the ``sources`` list from a YAML file.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Sources config not found: {config_path}")

    with open(config_path) as f:
        data = yaml.safe_load(f)

    if not data or "sources" not in data:
        raise ValueError("Invalid sources config: missing 'sources' section")
    if not isinstance(data["sources"], list):
        raise ValueError("Invalid sources config: 'sources' must be a list")

    return data["sources"]


def build_default_sources(config: AppConfig) -> list[BaseSource]:
    """Sources for ``config``: YAML file if configured, else the built-ins."""
    from modelcatalog.pipeline.retry import RetryingFetcher

    fetcher = RetryingFetcher(
        attempts=config.sync.retry_attempts,
        delay_seconds=config.sync.retry_delay_seconds,
    )

    if config.sync.sources_config_path is not None:
        source_configs = load_sources_config(config.sync.sources_config_path)
    else:
        source_configs = default_source_configs(config)

    return build_sources(
        source_configs,
        fetcher=fetcher,
        timeout_seconds=config.sync.request_timeout_seconds,
    )


def _create_source(
    source_config: dict[str, Any],
    fetcher: RetryingFetcher | None,
    timeout_seconds: float,
) -> BaseSource:
    """Create source instance from config.

    Raises:
        ValueError: If source type is unknown
    """
    source_type = source_config.get("type")
    source_name = source_config.get("name") or source_type

    if not source_type:
        raise ValueError(f"Source {source_name} missing 'type' field")

    source_cls = SOURCE_REGISTRY.get(source_type)
    if source_cls is None:
        raise ValueError(f"Unknown source type: {source_type}")

    return source_cls(
        source_name,
        source_config.get("config") or {},
        fetcher=fetcher,
        timeout_seconds=float(source_config.get("timeout_seconds", timeout_seconds)),
    )
