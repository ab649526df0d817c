"""Services wired by the application container."""
