"""Command line interface for RowFlow."""
