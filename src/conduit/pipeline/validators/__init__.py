"""Input validation schemas for pipeline documents."""
