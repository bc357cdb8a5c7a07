"""wlx command line interface."""
