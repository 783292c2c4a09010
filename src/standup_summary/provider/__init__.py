"""Generation provider client, model catalog and resilient generation."""
