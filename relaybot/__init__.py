"""
relaybot - Telegram front-end formatting for an AI coding assistant
"""

__version__ = "0.1.0"
__logo__ = "📨"
