"""
Application layer for the pricing bounded context.

Services coordinate the cache, the symbol resolver and provider ports
to serve quotes, histories and search results. No framework or
infrastructure imports allowed.
"""
