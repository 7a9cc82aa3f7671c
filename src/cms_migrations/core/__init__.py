"""Migration engine: naming, discovery, planning and running of units."""
