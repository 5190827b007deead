"""Rich console presentation for the command-line interface."""
