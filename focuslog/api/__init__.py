"""FocusLog API - FastAPI surface over the services."""
