"""HTTP surface: FastAPI router, schemas and middleware."""
