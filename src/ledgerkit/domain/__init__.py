"""Domain layer for ledgerkit: entities, errors and services."""
