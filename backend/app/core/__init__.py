"""
Core infrastructure for the Clipstream backend application.

- auth: Bearer JWT authentication dependency
- database: MongoDB async client with Motor driver and connection pooling
- middleware: Request body ceilings for upload routes
"""
