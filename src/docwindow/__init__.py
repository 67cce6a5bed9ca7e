"""docwindow: adaptive document chunking and token-windowed conversation memory."""

__version__ = "0.1.0"
