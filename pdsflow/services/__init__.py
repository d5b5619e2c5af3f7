"""Service packages of PDSFlow."""
