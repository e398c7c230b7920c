"""chromadmin: admin client for Chroma vector databases over the v1 and v2 HTTP APIs."""

__version__ = "0.1.0"
