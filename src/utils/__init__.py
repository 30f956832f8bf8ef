"""
Generic utility functions shared across modules.

Includes filesystem helpers for temp files and atomic replacement.
"""
