"""
Infrastructure layer package.

Contains concrete implementations (adapters) of the ports
defined in the domain layer: market-data HTTP providers and
the in-memory cache store.
"""
