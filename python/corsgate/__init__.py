"""corsgate - CORS policy engine and ASGI middleware."""
