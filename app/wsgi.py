"""
WSGI compatibility layer.

Wraps the ASGI FastAPI application for deployment on WSGI servers
such as Gunicorn or Waitress. Prefer ASGI deployment: the cache
sweeper and the shared HTTP client live in the ASGI lifespan.
"""

from asgiref.wsgi import AsgiToWsgi

from app.main import app

application = AsgiToWsgi(app)
