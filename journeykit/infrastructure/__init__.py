"""Infrastructure adapters (platform REST collaborators)."""
