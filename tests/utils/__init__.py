"""Test utilities package."""
