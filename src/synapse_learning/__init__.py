"""
synapse_learning

Top-level package for the Synapse Learning service.

Responsibilities:
- Expose package version metadata.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
