"""Infrastructure layer: platform integration and observability."""
