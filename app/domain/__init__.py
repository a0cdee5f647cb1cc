"""
Domain layer package.

Contains the framework-free core: errors, query translation and
port interfaces. No framework imports, no IO, no side effects.
"""
