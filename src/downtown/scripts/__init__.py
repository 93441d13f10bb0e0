"""Operational scripts for the downtown application."""
