"""CLI command implementations (render ledger results with rich)."""
