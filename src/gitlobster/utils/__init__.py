"""Utility helpers for gitlobster."""
