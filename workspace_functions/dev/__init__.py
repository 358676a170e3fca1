"""Local development harness: dev server, CLI test runner and scaffolding."""
