"""Client contract, metadata models and client decorators."""
