"""Push webhook resource."""
