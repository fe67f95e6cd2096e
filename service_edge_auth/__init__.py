"""Edge Auth service."""
