"""Catalog aggregation pipeline.

Concurrent fetch from heterogeneous upstream catalogs, normalization into
the canonical Model record, and attributable snapshot persistence.
"""
