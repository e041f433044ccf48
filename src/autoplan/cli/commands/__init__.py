"""CLI command groups; importing a module registers its commands."""
