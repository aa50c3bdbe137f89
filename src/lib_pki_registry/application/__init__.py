"""Application layer: merge policy, ports, and inventory comparison."""
