"""Logger factory, formatters, contextual fields and file handlers."""
