"""
ProcessSutra Flow Engine

Flow-rule resolution and turn-around-time (TAT) computation for the
ProcessSutra workflow platform: start-rule lookup, timeline projection,
business-calendar scheduling and flow simulation.
"""

__version__ = "0.1.0"
__author__ = "ProcessSutra Team"
