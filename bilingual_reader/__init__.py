"""
Bilingual Reader

Aligns Chinese/English articles into sentence cards and tracks reading
sessions through them.
"""

__version__ = "0.1.0"
