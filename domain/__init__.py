"""
Domain model for the performance analytics engine.
"""
