"""Domain services for the downtown API."""
