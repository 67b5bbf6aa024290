"""
Configuration management via environment variables and .env files.

Simulation constants (starting cash, retention window, book depth, tick
interval, drift bound, spread coefficient) live here as named, overridable
settings rather than being hardcoded in the components.
"""
