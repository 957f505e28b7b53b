"""Route Finder clients and the batch processor."""
