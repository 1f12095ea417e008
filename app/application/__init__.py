"""
Application layer package.

Contains the services that orchestrate domain logic: cache-first
lookups, bulk batching and portfolio aggregation.
This layer depends on domain ports, never on infrastructure.
"""
