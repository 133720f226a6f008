"""Long-running CLI commands."""
