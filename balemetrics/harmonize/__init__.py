"""Column name harmonization."""
