"""HTTP surface for one-shot transcript analysis."""
