"""
Core module: Configuration, errors and the ID registry.
"""
