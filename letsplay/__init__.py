"""Let's Play: users and products REST API."""
