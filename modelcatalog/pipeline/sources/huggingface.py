"""HuggingFace Hub source.

The Hub lists repositories, not priced endpoints: capabilities and
modalities are inferred from tags and the pipeline tag, and the context
window is a rough heuristic on the parameter count embedded in the id.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

from modelcatalog.models import Model
from modelcatalog.pipeline.base_source import BaseSource
from modelcatalog.pipeline.config_loader import register_source
from modelcatalog.pipeline.normalize import (
    has_text,
    is_new_release,
    to_bool,
    to_int,
    to_str,
    to_str_list,
)

SOURCE_NAME = "huggingface"

DEFAULT_CONTEXT_WINDOW = 2048
MAX_OUTPUT_CAP = 4096

_SIZE_PATTERN = re.compile(r"(\d+(?:\.\d+)?)(b|k|m|g|t)", re.IGNORECASE)

# (tag or pipeline tag, capability)
_CAPABILITY_TAGS = [
    ("text-generation", "text-generation"),
    ("text-classification", "classification"),
    ("question-answering", "qa"),
    ("token-classification", "ner"),
]

_MODALITIES = ["text", "image", "audio", "video"]


def estimate_context_window(model_id: str) -> int:
    """Guess a context window from a size marker like ``7b`` or ``70B``."""
    match = _SIZE_PATTERN.search(model_id)
    if not match:
        return DEFAULT_CONTEXT_WINDOW
    size = float(match.group(1))
    if match.group(2).lower() != "b":
        return DEFAULT_CONTEXT_WINDOW
    if size >= 70:
        return 4096
    if size >= 30:
        return 8192
    if size >= 7:
        return 4096
    return DEFAULT_CONTEXT_WINDOW


def is_gated(value: Any) -> bool:
    """Hub reports ``gated`` as false or an access mode ("auto", "manual")."""
    if isinstance(value, str):
        return value.strip().lower() not in ("", "false")
    return bool(value)


@register_source("huggingface")
class HuggingFaceSource(BaseSource):
    """Most-downloaded models from the HuggingFace Hub API."""

    async def fetch_raw(self) -> Any:
        return await self._get_json()

    def iter_records(self, raw: Any) -> Iterable[Any]:
        if not isinstance(raw, list):
            raise ValueError("expected a JSON array of models")
        return raw

    def transform_record(self, record: Any) -> Model:
        raw = record if isinstance(record, dict) else {}

        repo_id = to_str(raw.get("id")) or to_str(raw.get("modelId"))
        tags = to_str_list(raw.get("tags"))
        pipeline_tag = to_str(raw.get("pipeline_tag"))

        capabilities = [
            capability
            for tag, capability in _CAPABILITY_TAGS
            if tag in tags or pipeline_tag == tag
        ]
        modalities = [m for m in _MODALITIES if m in tags or m in pipeline_tag]

        context_window = estimate_context_window(repo_id)
        release_date = to_str(raw.get("createdAt"))

        if has_text(repo_id):
            provider = repo_id.split("/")[0] or "huggingface"
        else:
            provider = "Unknown"

        extra: dict[str, Any] = {
            "downloads": to_int(raw.get("downloads")),
            "likes": to_int(raw.get("likes")),
        }
        library = raw.get("library_name")
        if isinstance(library, str) and library:
            extra["libraryName"] = library

        return Model(
            id=f"huggingface/{repo_id}" if repo_id else "",
            name=repo_id or "Unknown",
            provider=provider,
            context_window=context_window,
            max_output_tokens=min(context_window, MAX_OUTPUT_CAP),
            input_cost=0.0,
            output_cost=0.0,
            modalities=modalities or ["text"],
            capabilities=capabilities,
            release_date=release_date,
            last_updated=to_str(raw.get("lastModified")),
            knowledge=pipeline_tag,
            open_weights=not to_bool(raw.get("private")) and not is_gated(raw.get("gated")),
            supports_temperature="text-generation" in capabilities,
            supports_attachments="image" in modalities,
            new=is_new_release(release_date),
            extra=extra,
        )
