"""Hevy API client, retry policy and local state files."""
