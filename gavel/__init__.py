"""HTTP auction service over MongoDB with automatic closing of expired auctions."""

__version__ = "0.1.0"