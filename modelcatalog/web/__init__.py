"""FastAPI web surface."""
