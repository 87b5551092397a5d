"""Settings modules: base (development), prod, test."""
