"""HTTP adapter around the secret store."""
