"""
statemount - Lifecycle manager for named singleton states

Declares stateful singleton components with a start and stop function,
starts and stops them in declaration order, keeps their values per session
and lets tests substitute their start and stop functions.
"""

__version__ = "0.1.0"
__author__ = "statemount Team"
