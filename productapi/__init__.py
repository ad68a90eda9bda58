"""In-memory product catalogue HTTP service, its data layer and an API client."""

__version__ = "1.0.0"