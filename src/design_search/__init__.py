"""Hybrid template and project retrieval for the design tool."""
