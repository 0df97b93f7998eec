"""journeykit: export, import and deep-delete authentication journeys with all their dependencies."""

__version__ = "1.0.0"
