"""Adapters connecting the application ports to files, resources, and the environment."""
