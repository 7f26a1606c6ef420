"""HTTP API for Smart File API."""
