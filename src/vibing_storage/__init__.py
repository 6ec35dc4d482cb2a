"""
Vibing Storage - a track store where listeners rate, tag and download music
"""

__version__ = "0.1.0"
