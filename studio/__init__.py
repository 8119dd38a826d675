"""Influencer Studio: persona workspace persistence and reel generation proxy."""

__version__ = "0.1.0"
