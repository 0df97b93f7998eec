"""Application use cases (orchestration over collaborators and services)."""
