"""Service layer: request-level operations over the repositories."""
