"""
imagetest - end-to-end validation of builder and runtime container images.

Builds fixture applications with the builder image, runs them in containers,
and asserts on build logs, HTTP responses, process identity and files.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
