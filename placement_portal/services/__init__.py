"""
Services module - grading, validation, merging and analytics.
"""
