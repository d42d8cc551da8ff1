"""Query building, result mapping and pagination."""
