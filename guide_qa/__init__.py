"""Chat assistant answering questions about a single PDF guide."""
