"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class GestureTransferConfig(BaseSettings):
    """Gesture transfer application configuration"""
    
    # Local storage configuration
    storage_backend: str = "memory"  # memory or sqlite
    storage_path: str = "gesture_transfer.db"
    
    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8090
    api_workers: int = 1
    
    # Session configuration
    session_ttl_hours: int = 24
    login_delay_seconds: float = 1.0  # Simulated authentication round-trip
    allowed_email_domain: str = "@gmail.com"
    
    # Exchange rate configuration
    rates_api_url: str = "https://api.exchangerate.host/latest"
    rates_timeout: float = 10.0
    default_base_currency: str = "USD"
    
    # Language configuration
    default_language: str = "en"
    
    # Face detector options
    face_model: str = "short"
    face_min_detection_confidence: float = 0.5
    
    # Hand detector options
    hands_max_num_hands: int = 2
    hands_model_complexity: int = 1
    hands_min_detection_confidence: float = 0.5
    hands_min_tracking_confidence: float = 0.5
    
    # Single-hand gesture detector options
    gesture_min_detection_confidence: float = 0.7
    gesture_reset_seconds: float = 2.0
    
    # Camera configuration
    camera_width: int = 640
    camera_height: int = 480
    camera_device: str = "0"  # device index or stream URL for the OpenCV camera
    
    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stdout
    
    class Config:
        env_prefix = "GESTURE_TRANSFER_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = GestureTransferConfig()


def get_config() -> GestureTransferConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> GestureTransferConfig:
    """Reload configuration from environment"""
    global config
    config = GestureTransferConfig()
    return config
