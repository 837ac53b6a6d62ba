"""Test data package."""
