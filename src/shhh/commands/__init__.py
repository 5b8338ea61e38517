"""Command implementations for the shhh CLI."""
