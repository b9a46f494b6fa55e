"""HTTP command surface for dirvault."""
