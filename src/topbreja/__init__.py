"""TopBreja: community ratings, votes and rankings for craft beers."""

__version__ = "0.1.0"
