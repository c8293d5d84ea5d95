import os
from dotenv import load_dotenv

load_dotenv()

DELETE_POLICIES = ('soft', 'hard')


class Config:
    """Base configuration class."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY') or 'jwt-secret-key-change-in-production'
    JWT_ACCESS_TOKEN_EXPIRES = int(os.environ.get('JWT_ACCESS_TOKEN_EXPIRES', '86400'))  # 24 hours
    
    # Key exchanged for a JWT at /auth/login
    API_KEY = os.environ.get('API_KEY') or 'outreach-sequences-api-key'
    
    # Sequence behaviour
    SEQUENCE_DELETE_POLICY = os.environ.get('SEQUENCE_DELETE_POLICY', 'soft').lower()
    DEFAULT_SEQUENCE_MAX_STEPS = int(os.environ.get('DEFAULT_SEQUENCE_MAX_STEPS', '5'))
    DEFAULT_TIMEZONE = os.environ.get('DEFAULT_TIMEZONE', 'UTC')
    
    # CORS configuration
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')
    
    # Logging configuration
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///outreach_sequences.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = True
    
    TESTING = False


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    
    # Production database (PostgreSQL)
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    
    # Production security settings
    SECRET_KEY = os.environ.get('SECRET_KEY')
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY')
    API_KEY = os.environ.get('API_KEY')
    
    # Production CORS (more restrictive)
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '').split(',')
    
    @classmethod
    def validate_config(cls):
        """Validate production configuration."""
        if not cls.SQLALCHEMY_DATABASE_URI:
            raise ValueError("DATABASE_URL environment variable is required for production")
        
        if not cls.SECRET_KEY:
            raise ValueError("SECRET_KEY environment variable is required for production")
        
        if not cls.JWT_SECRET_KEY:
            raise ValueError("JWT_SECRET_KEY environment variable is required for production")
        
        if not cls.API_KEY:
            raise ValueError("API_KEY environment variable is required for production")
        
        if cls.SEQUENCE_DELETE_POLICY not in DELETE_POLICIES:
            raise ValueError(f"SEQUENCE_DELETE_POLICY must be one of {', '.join(DELETE_POLICIES)}")
        
        if not cls.CORS_ORIGINS or cls.CORS_ORIGINS == ['']:
            raise ValueError("CORS_ORIGINS environment variable is required for production")


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    API_KEY = 'test-api-key'
    JWT_SECRET_KEY = 'test-jwt-secret-key-with-enough-length'
    SEQUENCE_DELETE_POLICY = 'soft'


# Configuration mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
