"""Recipe blog: admin JSON API and public browsing endpoints."""

__version__ = "0.1.0"
