"""End-to-end tests of the CLI and configuration workflow."""
