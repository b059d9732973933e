"""
Shared helpers: command execution, logging, files and system queries.
"""
