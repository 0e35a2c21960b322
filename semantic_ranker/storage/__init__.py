"""Document list persistence over a key-value string store."""
