"""Command implementations for the notefold CLI."""
