"""Domain rules and repository contracts."""
