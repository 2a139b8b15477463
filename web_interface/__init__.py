"""Cover Wall web interface (Goodreads RSS proxy)."""
