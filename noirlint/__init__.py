"""
noirlint - Find unused functions in Noir packages.
"""

__version__ = "0.1.0"

from noirlint.core.detector import Detector, analyze_source

__all__ = ["Detector", "analyze_source"]
