"""clipshelf - a clipboard history that lives next to the system clipboard."""

__version__ = "0.1.0"
