"""DevNexus: Azure DevOps project dashboard API."""

__version__ = "1.0.0"
