"""Product catalogue: models, service and router."""
