"""Core infrastructure shared by the rolegate modules."""
