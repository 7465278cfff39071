"""Top-level package for Django configuration.

This package exposes application configuration for the travel agency
back office. It contains settings modules for different environments and
the WSGI entry point.
"""
