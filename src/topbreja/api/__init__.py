"""HTTP API package for TopBreja."""
