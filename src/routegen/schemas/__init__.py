"""Wire and output schemas."""
