"""
Stencilry - directive core for a small template language

Translates `$if` / `$loop` / `:else` directives into constrained boolean
predicates and post-processes rendered values through output tags.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
