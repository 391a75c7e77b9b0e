"""HTTP API: application factory, routes, schemas and dependencies."""
