"""Pricing interface layer: FastAPI routers and schemas."""
