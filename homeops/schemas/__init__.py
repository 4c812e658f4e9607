"""Boundary schemas for the HomeOps calendar engine."""
