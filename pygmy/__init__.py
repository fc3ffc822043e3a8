"""Local development containers and resolver management over the Docker Engine API."""

__version__ = "0.1.0"