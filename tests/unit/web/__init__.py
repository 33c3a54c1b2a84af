"""Unit tests for the web route modules.

Routes run against a mocked service container through FastAPI's TestClient.
"""
