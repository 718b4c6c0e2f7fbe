"""
dns-plugin: delegate DNS provider operations to an out-of-process HTTP plugin.
"""

__version__ = "0.1.0"
