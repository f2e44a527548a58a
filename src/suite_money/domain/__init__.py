"""Monetary domain package.

This package contains the currency value model, classification hierarchies and the Money
type with exact, scale-aware decimal arithmetic.
"""
