"""Routers for the flow-spine API."""
