"""Terminal presentation of shrink results."""
