"""Imposter: real-time multiplayer party game backend."""
