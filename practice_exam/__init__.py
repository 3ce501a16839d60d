"""
Practice exam engine
Session progress, grading and question assignment for a gamified practice exam
"""

__version__ = '1.0.0'
