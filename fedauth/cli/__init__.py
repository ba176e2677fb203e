"""
Command line entry point for fedauth.
"""
