"""CLI commands for sls-rust.

Commands are loaded lazily by ``sls_rust_cli.main.LazyGroup``.
"""
