"""Release workflow engine: descriptor, store, strategies, phases, pipeline."""
