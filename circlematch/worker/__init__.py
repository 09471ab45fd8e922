"""
Worker Module

Background process invoking the matching trigger on a fixed cadence.

    python -m circlematch.worker.main
"""
