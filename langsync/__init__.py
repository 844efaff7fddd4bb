"""Keep Contao language files and XLIFF translations in sync."""

__version__ = "1.0.0"
