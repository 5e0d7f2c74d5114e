"""sls-rust-cli: Command line for building Rust serverless functions."""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
