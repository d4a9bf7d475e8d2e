"""Homepage app: editable homepage copy."""
