"""Resolver functions backing the GraphQL root and field types."""
