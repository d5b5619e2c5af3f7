"""PDSFlow: projects Personal Data Sheet records onto the CS Form 212 templates."""

__version__ = "0.1.0"
