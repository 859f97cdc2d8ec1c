"""Levels module - point tiers and QP-to-level resolution."""
