"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Named constants (defaults, table names, vendor keys)
- exceptions: Custom exception hierarchy
- ingress: Request payload helpers and collaborator factories
"""
