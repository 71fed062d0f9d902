"""
Test Suite

Contains unit tests for the REST dispatch client.

Structure:
- tests/unit/: Tests for individual components (signing, credential binding,
  dispatch, error translation, clients, schemas, configuration)

Network access is never required: tests run against httpx.MockTransport.
"""
