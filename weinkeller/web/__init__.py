"""HTTP API for Weinkeller."""
