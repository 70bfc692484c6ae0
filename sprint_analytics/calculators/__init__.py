"""Calculators deriving one analytical view of a sprint each."""
