"""
Authentication package for Let's Play.

This package provides authentication and authorization:
- User registration and login
- JWT token issuing and verification
- Request authentication gate
- Role- and ownership-based access policy
"""
