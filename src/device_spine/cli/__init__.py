"""device-spine command line interface (``device-spine``)."""
