"""Core utilities shared across the operator."""
