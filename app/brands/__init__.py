"""Brands module - read-only brand directory."""
