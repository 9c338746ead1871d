"""
Breath App - Guided Breathing Phase Scheduler

A deterministic, tick-driven scheduler for guided breathing practices. Walks
configured rounds of inhale/exhale cycles, classifies end-of-round holds and
notifies a host application about phase changes, completed cycles and the end
of the exercise.
"""

__version__ = "0.1.0"
__author__ = "Breath App Team"
