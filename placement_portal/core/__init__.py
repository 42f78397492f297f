"""
Core module - settings and domain exceptions.
"""
