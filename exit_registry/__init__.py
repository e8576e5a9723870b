"""exit-registry: harvest, enrich and serve exit-node addresses."""

__version__ = "0.1.0"
