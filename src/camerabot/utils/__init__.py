"""Shared helpers for camerabot."""
