"""Per-user video watch progress."""
