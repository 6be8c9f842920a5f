# studyshare/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- db: Database configuration and connection management
- errors: Typed service-layer failures and their HTTP status codes
- security: Authentication and password hashing
"""
