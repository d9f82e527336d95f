"""Accounts, credentials, sessions and role-based access control."""
