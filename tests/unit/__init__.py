"""Unit tests for individual components in isolation.

Ensures fast execution with minimal dependencies.

Coverage:
    - store/: Session ordering, selection, incremental edits, preferences
    - streaming/: Frame decoding and event application
    - engine/: Upload coordination with a stub client
    - config: Environment-driven client configuration

Follows single responsibility per test function. Leverages pytest-check
for multiple assertions per test.
"""
