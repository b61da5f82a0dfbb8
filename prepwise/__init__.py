"""
PrepWise - Interview Practice and Candidate Assessment Platform

Generates role-specific question sets, runs timed or self-paced assessment
sessions, and produces scored, categorized evaluations.
"""

__version__ = "0.1.0"
__author__ = "PrepWise Team"
