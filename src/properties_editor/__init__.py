"""properties-editor: side-by-side editor for .properties translation files."""

__version__ = "0.1.0"
