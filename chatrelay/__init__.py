"""
ChatRelay - multi-provider chat backend.

This package contains all application source code organized by responsibility:
- api/       : FastAPI routes and HTTP handling
- core/      : Configuration, logging, and cross-cutting utilities
- services/  : Chat orchestration and context assembly
- llm/       : Provider adapters, fallback routing and prompts
- database/  : SQLAlchemy engine, sessions and ORM models
- memory/    : Conversation stores (in-memory and SQL-backed)
- models/    : Pydantic models for request/response schemas
"""
__version__ = "1.0.0"
