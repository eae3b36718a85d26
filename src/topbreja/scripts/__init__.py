"""Maintenance commands for TopBreja."""
