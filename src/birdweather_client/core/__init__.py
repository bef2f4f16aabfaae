"""Core machinery: connection handle, query builder, flattener and paginator."""
