"""
Utility functions for the pcaengine package.
"""
