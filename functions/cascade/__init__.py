"""
Project deletion cascade and hard-delete helpers.
"""
