"""
rolltables - a random table engine for procedural content.

Tables of content are registered by name, rolled with dice-style draws,
and resolved through ``${...}`` templates that may reference dice notation
or other tables.
"""

__version__ = "0.1.0"
