"""
PaperTrade Pricing: cached market prices for a paper-trading platform.

Application package root. This is a modular monolith using
hexagonal architecture (ports & adapters) with domain-driven design.

Bounded contexts:
    - pricing: Stock and crypto quotes, symbol search, price history
      and portfolio value history, fronted by a freshness-aware cache.

Layers:
    - domain: Pure business logic, entities, ports (ABCs), errors.
    - application: Use cases, DTOs, orchestration.
    - infrastructure: Adapters (HTTP providers, cache) implementing domain ports.
    - interfaces: FastAPI routers, Pydantic schemas.
    - shared: Cross-cutting concerns (errors, security, logging).
"""
