"""models.dev catalog source.

Payload is an object of providers, each carrying an object of models::

    {"openai": {"name": "OpenAI", "models": {"gpt-4o": {...}, ...}}, ...}
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from modelcatalog.models import Model
from modelcatalog.pipeline.base_source import BaseSource
from modelcatalog.pipeline.config_loader import register_source
from modelcatalog.pipeline.normalize import (
    first_str,
    get_mapping,
    is_new_release,
    provider_or_unknown,
    to_bool,
    to_cost,
    to_int,
    to_str,
    to_str_list,
    unique,
)

SOURCE_NAME = "models.dev"


@register_source("models_dev")
class ModelsDevSource(BaseSource):
    """Provider-keyed JSON catalog with costs, limits and feature flags."""

    async def fetch_raw(self) -> Any:
        return await self._get_json()

    def iter_records(self, raw: Any) -> Iterable[tuple[str, Any]]:
        if not isinstance(raw, dict):
            return
        for provider, provider_data in raw.items():
            models = get_mapping(provider_data, "models")
            for raw_model in models.values():
                yield str(provider), raw_model

    def transform_record(self, record: tuple[str, Any]) -> Model:
        provider, raw = record
        if not isinstance(raw, dict):
            raw = {}

        cost = get_mapping(raw, "cost")
        limit = get_mapping(raw, "limit")
        modalities = get_mapping(raw, "modalities")

        capabilities = []
        if raw.get("tool_call") is True:
            capabilities.append("tools")
        if raw.get("reasoning") is True:
            capabilities.append("reasoning")
        if raw.get("knowledge") is True:
            capabilities.append("knowledge")

        release_date = first_str(raw, "release_date", "releaseDate")
        extra: dict[str, Any] = {}
        family = raw.get("family")
        if isinstance(family, str) and family:
            extra["family"] = family

        return Model(
            id=to_str(raw.get("id")),
            name=to_str(raw.get("name"), "Unknown"),
            provider=provider_or_unknown(provider, raw.get("id"), raw.get("name")),
            context_window=to_int(limit.get("context")),
            max_output_tokens=to_int(limit.get("output")),
            input_cost=to_cost(cost.get("input")),
            output_cost=to_cost(cost.get("output")),
            cache_read_cost=to_cost(cost.get("cache_read") or cost.get("cacheRead")),
            cache_write_cost=to_cost(cost.get("cache_write") or cost.get("cacheWrite")),
            modalities=unique(
                to_str_list(modalities.get("input")) + to_str_list(modalities.get("output"))
            ),
            capabilities=capabilities,
            release_date=release_date,
            last_updated=first_str(raw, "last_updated", "lastUpdated"),
            knowledge=to_str(raw.get("knowledge")),
            open_weights=to_bool(raw.get("open_weights")),
            supports_temperature=to_bool(raw.get("temperature")),
            supports_attachments=to_bool(raw.get("attachment")),
            new=is_new_release(release_date),
            extra=extra,
        )
