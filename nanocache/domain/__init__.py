"""Domain layer: models, interfaces and exceptions of the cache store."""
