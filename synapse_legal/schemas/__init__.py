"""Pydantic schemas for records, requests and responses."""
