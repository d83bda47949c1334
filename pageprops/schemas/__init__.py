"""Schemas Layer: pydantic models for the wire shape of a rendered page."""
