"""
Authentication package for storeapi.

This package provides authentication and authorization:
- Session token issuance and verification
- User registration and login
- Authentication and admin-role gates
"""
