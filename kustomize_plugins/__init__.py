"""
Configure and run the builtin generator and transformer plugins of a
kustomization.
"""

__all__ = [
    "types",
    "options",
    "loader",
    "resource",
    "plugins",
    "target",
    "exceptions",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
