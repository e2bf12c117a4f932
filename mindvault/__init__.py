"""
MindVault Backend — Application Package Initializer
=====================================================

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only, plaintext
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← protect() on write, reveal() on read
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← ORM rows hold tokens
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
