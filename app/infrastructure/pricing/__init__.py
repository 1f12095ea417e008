"""
Infrastructure adapters for the pricing bounded context.

Each adapter implements a domain port (ABC) and connects to an
external system: the in-process cache or a market-data HTTP API.
"""
