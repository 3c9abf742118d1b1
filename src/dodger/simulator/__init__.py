"""Desktop simulator host."""
