"""fallible command line interface."""
