"""Signup requests: public submission, admin approval or rejection."""
