"""FocusLog test suite.

- unit/: insights, ai, storage and services, plus config, logging and CLI
- integration/: FastAPI routes and end-to-end flows
"""
