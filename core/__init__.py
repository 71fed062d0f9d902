"""
Core Package

Exchange-agnostic building blocks shared by the connectors:
- config: Pydantic settings loaded from the environment / .env
- logging: Library logger and request/response log helpers
- schemas: Pydantic models for request enums and decoded responses
- utils: Millisecond timestamp helpers
"""
