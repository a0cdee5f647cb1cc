"""
Infrastructure layer package.

Contains concrete implementations (adapters) of the ports
defined in the domain layer: the MongoDB client and document
models backed by Motor collections.
"""
