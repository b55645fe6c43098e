"""
Constants, settings and document types shared by the functions.
"""
