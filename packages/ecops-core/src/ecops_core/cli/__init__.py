"""ecops command line interface."""
