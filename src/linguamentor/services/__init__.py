"""Services of the vocabulary backend."""
