"""Governance database access."""
