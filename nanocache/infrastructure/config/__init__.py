"""Configuration loading from YAML, .env files and the environment."""
