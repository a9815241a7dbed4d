"""
CLI (Command Line Interface) for hydradiff.

This is a thin wrapper around the engine. All analysis logic lives in the
hydradiff package so library consumers get the same behavior.
"""
