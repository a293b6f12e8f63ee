"""
Agile user story generator.

Turns one-sentence feature descriptions into formatted user stories using a
team-configured template, with optional LLM refinement.
"""

__version__ = "1.0.0"
