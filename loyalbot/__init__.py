"""Loyalty account provisioning bot."""
