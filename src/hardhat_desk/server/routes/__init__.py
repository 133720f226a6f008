"""Transport routes."""
