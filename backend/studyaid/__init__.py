"""Study Aid backend: session resilience, spaced repetition and document processing."""

__version__ = "0.1.0"
