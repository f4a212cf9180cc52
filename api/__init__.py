"""HTTP surface for the try-on engine."""
