"""Star Wars API proxy with call logging and cached usage statistics."""
