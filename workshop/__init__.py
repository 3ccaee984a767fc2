"""
Exercises and the rendered report for the missing data workshop.
"""

from .exercises import EXERCISES, Exercise, ExerciseResult, check_answer, get_exercise
from .report import Section, build_report, render_html

__all__ = [
    'EXERCISES',
    'Exercise',
    'ExerciseResult',
    'check_answer',
    'get_exercise',
    'Section',
    'build_report',
    'render_html',
]
