"""
Example scripts for pedestrian dead reckoning.

Examples:
    - example_pdr_navigation.py: Step-and-heading navigation on a recording
      or a synthetic corridor walk, with dead-reckoning or particle tracking
"""

__all__ = []
