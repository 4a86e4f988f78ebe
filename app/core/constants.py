"""
Service-wide constants
"""

SERVICE_NAME = "attendance-review-backend"
