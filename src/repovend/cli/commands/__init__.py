"""Top-level repovend commands (one module per subcommand)."""
