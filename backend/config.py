import json
from typing import Dict, Any, List
from pathlib import Path

class Config:
    """Business rule configuration loaded from config.json"""

    def __init__(self, config_file: str = "config.json"):
        self.config_file = config_file
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from JSON file"""
        config_path = Path(__file__).parent / self.config_file

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, 'r') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key (supports dot notation)"""
        keys = key.split('.')
        value = self._config

        try:
            for k in keys:
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def get_referral_config(self) -> Dict[str, Any]:
        """Get referral configuration"""
        return self._config.get("referral", {})

    def get_referral_code_length(self) -> int:
        return int(self.get_referral_config().get("code_length", 5))

    def get_referral_code_alphabet(self) -> str:
        return str(self.get_referral_config().get("code_alphabet", "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"))

    def get_referral_max_attempts(self) -> int:
        return int(self.get_referral_config().get("max_code_attempts", 5))

    def get_leaderboard_config(self) -> Dict[str, int]:
        """Get leaderboard paging defaults and bounds"""
        leaderboard = self._config.get("leaderboard", {})
        return {
            "default_limit": int(leaderboard.get("default_limit", 20)),
            "max_limit": int(leaderboard.get("max_limit", 100)),
        }

    def get_referral_badges(self) -> List[Dict[str, Any]]:
        """Get referral-count badges, lowest threshold first"""
        badges = self._config.get("badges", {}).get("referral_count", [])
        return sorted(badges, key=lambda b: int(b.get("threshold", 0)))

    def get_notification_template(self, notification_type: str) -> str:
        return self._config.get("notifications", {}).get(notification_type, "")

    def reload(self):
        """Reload configuration from file"""
        self._config = self._load_config()

    def get_all(self) -> Dict[str, Any]:
        """Get all configuration"""
        return self._config.copy()

# Global configuration instance
config = Config()
