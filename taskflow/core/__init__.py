"""Configuration, persistence and security primitives."""
