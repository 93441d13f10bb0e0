"""HTTP API for the downtown application."""
