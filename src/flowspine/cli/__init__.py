"""flow-spine command line interface."""
