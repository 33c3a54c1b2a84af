"""ModelCatalog - aggregated AI model metadata with auditable filter runs.

Collects pricing, context limits and capabilities from several public model
catalogs, stores attributable snapshots per sync, and evaluates saved
hard/soft filter rules against the aggregated catalog.
"""

__version__ = "0.1.0"
