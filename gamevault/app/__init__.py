"""Application layer: configuration, FastAPI app and dependencies."""
