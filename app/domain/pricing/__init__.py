"""
Pricing bounded context: domain layer.

This module contains all domain logic for the pricing context:
- Quote, history and search value objects
- Cache entry freshness rules
- Stock/crypto symbol classification
- Search result filtering rules
"""
