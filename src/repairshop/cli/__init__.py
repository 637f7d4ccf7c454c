"""Command line interface for repairshop."""
