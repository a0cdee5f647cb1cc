"""MongoDB adapters (Motor)."""
