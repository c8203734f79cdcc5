"""Source-specific news collectors."""
