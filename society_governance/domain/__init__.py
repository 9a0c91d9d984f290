"""Domain layer: models, errors and state machines with no I/O."""
