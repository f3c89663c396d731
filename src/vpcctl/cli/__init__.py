"""Command-line interface for vpcctl."""
