"""Alert rule templates, records and the YAML codec."""
