"""
POS Pro Configuration Management
Loads environment variables and provides secure defaults
"""
import os

from dotenv import load_dotenv

# Local overrides for development; missing file is fine
load_dotenv('.env.local')


class Config:
    # Flask Configuration
    SECRET_KEY = os.environ.get('FLASK_SECRET_KEY') or 'dev-secret-key-change-in-production'
    DEBUG = os.environ.get('DEBUG', 'false').lower() == 'true'

    # Hosted database
    SUPABASE_URL = os.environ.get('SUPABASE_URL')
    SUPABASE_ANON_KEY = os.environ.get('SUPABASE_ANON_KEY')
    SUPABASE_TIMEOUT = float(os.environ.get('SUPABASE_TIMEOUT', 10))

    # Device-local storage
    DATA_DIR = os.environ.get('POSPRO_DATA_DIR') or os.path.join(os.getcwd(), 'data')
    APP_SECRET_KEY = os.environ.get('POSPRO_APP_SECRET_KEY') or 'pospro-dev-app-secret'
    ENABLE_FILE_LOGGING = os.environ.get('ENABLE_FILE_LOGGING', 'true').lower() == 'true'

    # Licensing
    ACTIVATION_RATE_LIMIT = os.environ.get('ACTIVATION_RATE_LIMIT', '10 per minute')
    RECONCILE_PENDING_ON_LOGIN = os.environ.get('RECONCILE_PENDING_ON_LOGIN', 'true').lower() == 'true'

    @classmethod
    def validate_config(cls):
        """Validate that all required environment variables are set"""
        required_vars = [
            'SUPABASE_URL',
            'SUPABASE_ANON_KEY',
        ]

        missing_vars = [var for var in required_vars if not getattr(cls, var)]
        if missing_vars:
            raise ValueError(f"Missing required environment variables: {', '.join(missing_vars)}")

        return True

    @classmethod
    def get_supabase_settings(cls):
        """Get hosted database connection settings with validation"""
        cls.validate_config()
        return {
            'base_url': cls.SUPABASE_URL,
            'api_key': cls.SUPABASE_ANON_KEY,
            'timeout': cls.SUPABASE_TIMEOUT,
        }
