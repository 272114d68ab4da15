"""Command-line client for the BambooHR REST API.

The command surface is wrapped in Typer with Rich error rendering, while
command payload outputs remain machine-friendly JSON unless a human summary
is requested.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
