"""wRVU Comp command-line interface."""
