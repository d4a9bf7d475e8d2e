"""Category app: grouping labels for reports."""
