"""HTTP API: FastAPI app, pydantic models, and the in-memory session store."""
