"""Command line interface and output rendering."""
