"""Shared helpers used across changeling packages."""
