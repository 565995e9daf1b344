"""Upload validation helpers and response schemas."""
