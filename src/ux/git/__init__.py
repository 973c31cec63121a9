"""Git helpers for change detection."""
