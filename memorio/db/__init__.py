"""Persistence layer: engine/session plumbing, ORM models and read queries."""
