"""Server layer — ASGI dispatch, content negotiation, error rendering."""
