"""Legal-helper chat service with streamed, tool-augmented answers."""

__version__ = "0.1.0"
