"""External services: edit proposals, reconciliation and speech."""
