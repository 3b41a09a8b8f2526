"""Core domain layer: models, interfaces, and ledger services."""
