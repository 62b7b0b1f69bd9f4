"""
Pipelines for browsing insights.

Each subpackage orchestrates a repository read and the pure analysis
for one insight and exposes its service singleton.
"""

__all__ = ["hoarders", "serial_openers", "sessions"]
