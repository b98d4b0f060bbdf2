"""
VIS school site services: admin session store, VIS-AI chat client, quiz generator.
"""

__version__ = "1.0.0"
