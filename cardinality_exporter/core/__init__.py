"""Process infrastructure: Flask app class, shutdown coordination, runner."""
