"""
Worker pipelines.
"""
