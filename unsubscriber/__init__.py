"""
Better Unsubscribe - detect and execute unsubscribe actions for email messages.
"""

__version__ = '1.0.0'
