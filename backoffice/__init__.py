"""Back-office API for the call-service and marketing-service modules"""

__version__ = "1.0.0"
