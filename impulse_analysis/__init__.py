"""
Impulse Response Analyzer

Extracts spectral and envelope features from a decoded impulse response
and classifies it as reverb or delay, with duration, brightness and
texture categories.
"""

__version__ = "1.0.0"
__author__ = "Audio Analysis Team"
