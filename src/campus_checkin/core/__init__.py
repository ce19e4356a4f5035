"""Configuration, security primitives and the error taxonomy."""
