"""ArtificialAnalysis benchmark dataset source.

The dataset is a CSV with a header row::

    modelName,intelligenceIndex,detailsUrl,isLabClaimedValue

It carries no provider, pricing or limits, so those are inferred from
keywords in the model name.
"""

from __future__ import annotations

import io
import re
from collections.abc import Iterable
from typing import Any

import pandas as pd

from modelcatalog.models import Model
from modelcatalog.pipeline.base_source import BaseSource
from modelcatalog.pipeline.config_loader import register_source
from modelcatalog.pipeline.normalize import has_text, to_bool, to_number, to_str

SOURCE_NAME = "artificialanalysis"

# Checked in order; first hit wins
_PROVIDER_KEYWORDS: list[tuple[tuple[str, ...], str]] = [
    (("gpt", "codex"), "openai"),
    (("claude",), "anthropic"),
    (("grok",), "xai"),
    (("o3", "o1"), "openai"),
    (("gemini", "bard"), "google"),
    (("llama",), "meta"),
    (("qwen",), "alibaba"),
    (("deepseek",), "deepseek"),
]

_CAPABILITY_KEYWORDS: list[tuple[tuple[str, ...], str]] = [
    (("reasoning", "thinking"), "reasoning"),
    (("vision", "image"), "vision"),
    (("tool", "function"), "tools"),
    (("code", "codex"), "coding"),
]

# (keywords, context window, input cost, output cost)
_TIER_KEYWORDS: list[tuple[tuple[str, ...], int, float, float]] = [
    (("gpt-5", "o3"), 128_000, 0.01, 0.03),
    (("claude", "grok"), 200_000, 0.015, 0.075),
    (("gemini",), 1_000_000, 0.01, 0.02),
]

DEFAULT_CONTEXT_WINDOW = 4096
MAX_OUTPUT_CAP = 4096


def _has_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def infer_provider(model_name: str) -> str:
    lowered = model_name.lower()
    for keywords, provider in _PROVIDER_KEYWORDS:
        if _has_any(lowered, keywords):
            return provider
    return "unknown"


def infer_capabilities(model_name: str) -> list[str]:
    lowered = model_name.lower()
    capabilities = [cap for keywords, cap in _CAPABILITY_KEYWORDS if _has_any(lowered, keywords)]
    return capabilities or ["text-generation"]


def infer_tier(model_name: str) -> tuple[int, float, float]:
    lowered = model_name.lower()
    for keywords, context, input_cost, output_cost in _TIER_KEYWORDS:
        if _has_any(lowered, keywords):
            return context, input_cost, output_cost
    return DEFAULT_CONTEXT_WINDOW, 0.0, 0.0


def slugify(model_name: str) -> str:
    return re.sub(r"\s+", "-", model_name).lower()


@register_source("artificial_analysis")
class ArtificialAnalysisSource(BaseSource):
    """Benchmark leaderboard exported as CSV."""

    async def fetch_raw(self) -> Any:
        return await self._get_text()

    def iter_records(self, raw: Any) -> Iterable[dict[str, Any]]:
        if not isinstance(raw, str):
            raise ValueError("expected CSV text")
        if not raw.strip():
            return []

        header = pd.read_csv(io.StringIO(raw), nrows=0).columns
        if "modelName" not in header:
            raise ValueError("CSV header is missing the 'modelName' column")

        def truncate(bad_line: list[str]) -> list[str]:
            self.logger.warning(
                f"Truncating {self.source_name} row with {len(bad_line)} fields "
                f"(expected {len(header)}): {bad_line[:1]}"
            )
            return bad_line[: len(header)]

        # Short rows are padded with NaN, long rows are cut back to the header width
        df = pd.read_csv(
            io.StringIO(raw),
            dtype=str,
            keep_default_na=False,
            engine="python",
            on_bad_lines=truncate,
        ).fillna("")

        self.logger.info(f"Read {len(df)} rows from {self.source_name} dataset")
        return df.to_dict(orient="records")

    def transform_record(self, record: dict[str, Any]) -> Model:
        model_name = to_str(record.get("modelName")).strip()
        index = to_number(record.get("intelligenceIndex"))
        index_text = f"{index:g}"

        context_window, input_cost, output_cost = infer_tier(model_name)
        lowered = model_name.lower()

        extra: dict[str, Any] = {
            "intelligenceIndex": index,
            "isLabClaimedValue": to_bool(record.get("isLabClaimedValue")),
        }
        details_url = to_str(record.get("detailsUrl"))
        if details_url:
            extra["detailsUrl"] = details_url

        return Model(
            id=f"artificialanalysis/{slugify(model_name)}" if model_name else "",
            name=model_name or "Unknown",
            provider=infer_provider(model_name) if has_text(model_name) else "Unknown",
            context_window=context_window,
            max_output_tokens=min(context_window, MAX_OUTPUT_CAP),
            input_cost=input_cost,
            output_cost=output_cost,
            modalities=["text"],
            capabilities=infer_capabilities(model_name),
            knowledge=f"Intelligence Index: {index_text}",
            open_weights=False,
            supports_temperature=True,
            supports_attachments="vision" in lowered or "image" in lowered,
            new=False,
            extra=extra,
        )
