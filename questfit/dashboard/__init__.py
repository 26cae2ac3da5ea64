"""Instructor dashboard read model."""
