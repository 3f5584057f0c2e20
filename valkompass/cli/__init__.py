"""Command line interface: ``valkompass start | status | reset | config``."""
