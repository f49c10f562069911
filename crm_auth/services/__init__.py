"""Domain services: credential store, token issuer/verifier, permission resolver."""
