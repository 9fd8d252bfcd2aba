"""Layout engine and room template catalogs."""
