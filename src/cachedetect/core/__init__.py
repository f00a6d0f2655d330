"""Detection, traversal and aggregation engine."""
