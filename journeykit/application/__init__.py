"""Application layer: collaborator ports, DTOs, engine services and use cases."""
