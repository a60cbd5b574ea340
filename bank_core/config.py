"""
Configuration Management Module

Settings come from BANKCORE_* environment variables or a .env file.
"""

from pydantic_settings import BaseSettings


class BankCoreConfig(BaseSettings):
    """Bank core configuration"""
    
    # Identity counters
    account_number_start: int = 1000
    user_id_start: int = 1
    
    # Behaviour
    record_transactions: bool = True  # Append resolved transactions to account history
    seed_demo_data: bool = False
    
    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8090
    
    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # anything else gives plain text
    
    # Feature flags
    enable_audit_logging: bool = True
    
    class Config:
        env_prefix = "BANKCORE_"
        env_file = ".env"
        case_sensitive = False


# Loaded once at import
config = BankCoreConfig()


def get_config() -> BankCoreConfig:
    """Process-wide settings"""
    return config


def reload_config() -> BankCoreConfig:
    """Re-read settings from the environment and replace the global instance"""
    global config
    config = BankCoreConfig()
    return config
