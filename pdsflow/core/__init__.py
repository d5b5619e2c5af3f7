"""Core plumbing shared by PDSFlow services."""
