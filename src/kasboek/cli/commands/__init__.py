"""Command groups for the kasboek CLI."""
