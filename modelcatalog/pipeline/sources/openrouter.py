"""OpenRouter catalog source (``{"data": [...]}`` with a pricing sub-object)."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from modelcatalog.models import Model
from modelcatalog.pipeline.base_source import BaseSource
from modelcatalog.pipeline.config_loader import register_source
from modelcatalog.pipeline.normalize import (
    epoch_to_date,
    get_mapping,
    is_new_release,
    provider_or_unknown,
    to_cost,
    to_int,
    to_str,
    to_str_list,
    unique,
)

SOURCE_NAME = "openrouter"
DEFAULT_MAX_OUTPUT_TOKENS = 4096


@register_source("openrouter")
class OpenRouterSource(BaseSource):
    """Router catalog; provider is the id prefix (``anthropic/claude-3``)."""

    async def fetch_raw(self) -> Any:
        return await self._get_json()

    def iter_records(self, raw: Any) -> Iterable[Any]:
        data = raw.get("data") if isinstance(raw, dict) else None
        if not isinstance(data, list):
            raise ValueError("expected an object with a 'data' array")
        return data

    def transform_record(self, record: Any) -> Model:
        raw = record if isinstance(record, dict) else {}

        model_id = to_str(raw.get("id"))
        name = to_str(raw.get("name"), "Unknown")
        pricing = get_mapping(raw, "pricing")
        architecture = get_mapping(raw, "architecture")
        top_provider = get_mapping(raw, "top_provider")
        parameters = to_str_list(raw.get("supported_parameters"))

        capabilities = []
        if "tools" in parameters:
            capabilities.append("tools")
        if "reasoning" in parameters:
            capabilities.append("reasoning")

        modalities = unique(
            to_str_list(architecture.get("input_modalities"))
            + to_str_list(architecture.get("output_modalities"))
        )

        prefix = model_id.split("/")[0] if model_id else ""
        release_date = epoch_to_date(raw.get("created"))

        extra: dict[str, Any] = {}
        tokenizer = architecture.get("tokenizer")
        if isinstance(tokenizer, str) and tokenizer:
            extra["tokenizer"] = tokenizer
        if "is_moderated" in top_provider:
            extra["isModerated"] = bool(top_provider.get("is_moderated"))

        return Model(
            id=model_id,
            name=name,
            provider=provider_or_unknown(prefix or "unknown", raw.get("id"), raw.get("name")),
            context_window=to_int(raw.get("context_length")),
            max_output_tokens=(
                to_int(top_provider.get("max_completion_tokens"))
                or DEFAULT_MAX_OUTPUT_TOKENS
            ),
            input_cost=to_cost(pricing.get("prompt")),
            output_cost=to_cost(pricing.get("completion")),
            cache_read_cost=to_cost(pricing.get("input_cache_read")),
            cache_write_cost=to_cost(pricing.get("input_cache_write")),
            modalities=modalities,
            capabilities=capabilities,
            release_date=release_date,
            last_updated="",
            knowledge=to_str(raw.get("description")),
            open_weights=False,
            supports_temperature="temperature" in parameters,
            supports_attachments="image" in modalities,
            new=is_new_release(release_date),
            extra=extra,
        )
