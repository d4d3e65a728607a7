"""notefold - property, task and tag rollups for markdown vaults."""

__version__ = "0.1.0"
