"""
Core utilities: exception taxonomy, logging and the event system.
"""
