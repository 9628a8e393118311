"""StallSync: multi-site inventory, sales and staff management on Firebase."""

__version__ = "1.0.0"
