"""
Generic utility functions shared across modules.

Includes time/clock abstractions, random sources, logging setup,
money formatting, and error classes.
"""
