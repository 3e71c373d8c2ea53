# app/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: Storage/service wiring, SYSTEM organization and default admin creation
- db: Database configuration and connection management
- errors: Application error taxonomy and the error envelope
- security: Password hashing and session token signing
- sessions: Server-side session stores
"""
