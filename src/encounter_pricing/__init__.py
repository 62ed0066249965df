"""
Encounter Pricing Package

Builds a medical encounter from procedure codes and prices each code with
up to three ordered modifiers applied to its base price.
"""

__version__ = "1.0.0"
