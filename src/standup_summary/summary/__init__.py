"""Stand-up summary orchestration."""
