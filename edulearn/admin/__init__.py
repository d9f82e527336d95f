"""Admin dashboard: platform counts and account directory."""
