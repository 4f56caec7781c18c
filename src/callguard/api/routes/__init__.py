"""Route handlers for the analysis API."""
