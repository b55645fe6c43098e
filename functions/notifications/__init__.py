"""
Notification creation and push dispatch.
"""
