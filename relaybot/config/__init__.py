from relaybot.config.loader import load_config
from relaybot.config.schema import Config, SplitterConfig, TelegramConfig

__all__ = ["Config", "SplitterConfig", "TelegramConfig", "load_config"]
