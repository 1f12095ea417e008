"""
Shared module package.

Contains cross-cutting concerns used across the application:
- Error handling and mapping
- Rate limiting
- Logging configuration
"""
