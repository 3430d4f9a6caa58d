import os


class BaseConfig:
    SECRET_KEY = os.getenv('SECRET_KEY', 'change-me')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///denidom.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET = os.getenv('JWT_SECRET', 'your-secret-key')
    JWT_EXPIRES_DAYS = int(os.getenv('JWT_EXPIRES_DAYS', '7'))
    AUTH_RATE_LIMIT = int(os.getenv('AUTH_RATE_LIMIT', '5'))
    AUTH_RATE_WINDOW = int(os.getenv('AUTH_RATE_WINDOW', '900'))

    CORS_ORIGIN = os.getenv('CORS_ORIGIN', 'http://localhost:3000')

    # OpenAI-compatible chat completions endpoint
    AI_API_KEY = os.getenv('AI_API_KEY', '')
    AI_API_URL = os.getenv('AI_API_URL', 'https://api.openai.com/v1')
    AI_MODEL = os.getenv('AI_MODEL', 'gpt-4o-mini')
    AI_TIMEOUT = int(os.getenv('AI_TIMEOUT', '30'))

class DevConfig(BaseConfig):
    DEBUG = True
    ENV = 'development'

class TestConfig(BaseConfig):
    TESTING = True
    ENV = 'testing'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    JWT_SECRET = 'test-secret'
    AUTH_RATE_LIMIT = 1000
    AI_API_KEY = ''

class ProdConfig(BaseConfig):
    DEBUG = False
    ENV = 'production'


CONFIGS = {
    'development': DevConfig,
    'testing': TestConfig,
    'production': ProdConfig,
}
