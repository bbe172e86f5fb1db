"""IES triple language server: line-style diagnostics, instance hover and
knowledge-base completion."""

__version__ = "0.1.0"
