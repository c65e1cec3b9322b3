"""I/O side of the signal engine: settings, providers, caching and services."""
