"""Configuration command implementations backing the chat command layer."""
