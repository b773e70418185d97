"""
Core infrastructure for the Tubely backend application.

- auth: Bearer JWT validation and the current-user dependency
- database: MongoDB async client with Motor driver and connection pooling
"""
