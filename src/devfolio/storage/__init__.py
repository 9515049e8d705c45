"""DuckDB persistence for portfolio content."""
