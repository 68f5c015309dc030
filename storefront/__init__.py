"""Storefront API: product catalogue, indexed search and shopping carts."""

__version__ = "2.0.0"
