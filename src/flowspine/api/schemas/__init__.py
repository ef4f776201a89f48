"""Pydantic schemas for the flow-spine API."""
