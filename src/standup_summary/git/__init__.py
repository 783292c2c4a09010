"""Git history access and multi-branch commit aggregation."""
