"""Upstream catalog adapters.

Importing this package registers every built-in source type with the
source registry in ``modelcatalog.pipeline.config_loader``.
"""

from modelcatalog.pipeline.sources.artificial_analysis import ArtificialAnalysisSource
from modelcatalog.pipeline.sources.huggingface import HuggingFaceSource
from modelcatalog.pipeline.sources.models_dev import ModelsDevSource
from modelcatalog.pipeline.sources.openrouter import OpenRouterSource

__all__ = [
    "ArtificialAnalysisSource",
    "HuggingFaceSource",
    "ModelsDevSource",
    "OpenRouterSource",
]
