"""
Configuration module.

Defaults, YAML loading with layered precedence, and validation for the
engine settings and declarative system configurations.
"""
