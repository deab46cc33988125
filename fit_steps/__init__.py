"""Daily Google Fit step summary written to a text file."""
