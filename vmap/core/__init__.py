"""Engine core: data model, state store, clustering and routing (no drawing)."""
