"""Parsing Expression Grammar parsers built from expression trees, with packrat caching, left recursion and precedence climbing."""

__version__ = "0.8.5"