"""Relay between device connections and a shared chat account."""
