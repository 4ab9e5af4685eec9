"""Order fulfillment and inventory core for a multi-market grocery storefront."""

__version__ = "0.1.0"
