"""Test package for chatstream.

Provides coverage for all components with unit tests for isolated logic
and integration tests for workflows against an in-process fake backend.

Structure:
    - unit/: Store, decoder, applier, preferences, config, uploads
    - integration/: Client, pipeline and service against the fake backend
    - fake_backend.py: FastAPI implementation of the backend contract
    - factories.py: Session, message and frame builders

Leverages pytest with pytest-asyncio and pytest-check for soft assertions.
"""
