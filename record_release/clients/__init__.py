"""Remote API clients: HTTP transport, ops ledger, GitHub releases."""
