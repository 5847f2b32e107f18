"""Text preprocessing helpers used before classification."""
