"""HTTP middleware for the flow-spine API."""
