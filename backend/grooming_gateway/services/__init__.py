"""
Business logic services package.

WHY: Services contain the import pipeline and downstream calls, separated
from API routes.
"""
