"""Adapters binding the core to GraphQL indexers, Slack and the dedup file."""
