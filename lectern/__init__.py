"""
Lectern - quiz-driven learning platform.
"""

__version__ = "0.3.0"
