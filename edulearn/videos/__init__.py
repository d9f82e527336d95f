"""Read-only view of the video catalog."""
