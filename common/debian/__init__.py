"""Debian package management helpers."""
