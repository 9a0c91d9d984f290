"""Application layer: ports and services orchestrating the domain."""
