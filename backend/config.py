import os
from dotenv import load_dotenv
from urllib.parse import quote_plus

# Load environment variables from .env file
load_dotenv()


def _database_uri():
    """Pick the database URI from the environment, MySQL first."""
    if os.environ.get('MYSQL_HOST'):
        user = os.environ.get('MYSQL_USER')
        password = quote_plus(os.environ.get('MYSQL_PASSWORD', ''))  # URL encode the password
        host = os.environ.get('MYSQL_HOST')
        database = os.environ.get('MYSQL_DATABASE')
        return f"mysql+pymysql://{user}:{password}@{host}/{database}"
    return os.environ.get('DATABASE_URL')


class Config:
    # Flask
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'your-secret-key-here'

    # Database. Without a configured store the app still boots on an
    # in-memory SQLite database, but write paths answer 503.
    DATABASE_CONFIGURED = bool(_database_uri())
    SQLALCHEMY_DATABASE_URI = _database_uri() or 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
    }
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Hosted identity + storage platform
    SUPABASE_URL = os.environ.get('SUPABASE_URL') or os.environ.get('NEXT_PUBLIC_SUPABASE_URL')
    SUPABASE_ANON_KEY = os.environ.get('SUPABASE_ANON_KEY') or os.environ.get('NEXT_PUBLIC_SUPABASE_ANON_KEY')
    SUPABASE_SERVICE_ROLE_KEY = os.environ.get('SUPABASE_SERVICE_ROLE_KEY')

    # OpenAI
    OPENAI_API_KEY = os.environ.get('OPENAI_API_KEY')
    OPENAI_MODEL = os.environ.get('OPENAI_MODEL', 'gpt-4o-mini')
    USE_OPENAI = os.environ.get('USE_OPENAI', 'true').lower() == 'true'

    # Affiliate programs
    AMAZON_AFFILIATE_TAG = os.environ.get('AMAZON_AFFILIATE_TAG')

    # Public site
    SITE_URL = os.environ.get('SITE_URL') or os.environ.get('NEXT_PUBLIC_SITE_URL') or 'https://thegiddylist.com'

    # Scheduled jobs
    CRON_SECRET = os.environ.get('CRON_SECRET')

    # Scraping settings
    SCRAPE_TIMEOUT = int(os.environ.get('SCRAPE_TIMEOUT', '15'))
    SCRAPE_BATCH_LIMIT = 10  # URLs per batch request
    REFRESH_BATCH_LIMIT = 50  # products per weekly refresh
    REFRESH_MAX_AGE_DAYS = 7
    REFRESH_DELAY = 0.5  # seconds between refresh scrapes

    # Uploads
    UPLOAD_MAX_BYTES = 5 * 1024 * 1024

    # Pagination
    PRODUCTS_PER_PAGE = 50
    GUIDES_PER_PAGE = 20
    TRENDING_PER_PAGE = 12

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()


class DevelopmentConfig(Config):
    DEBUG = True


class ProductionConfig(Config):
    DEBUG = False


class TestingConfig(Config):
    TESTING = True
    DATABASE_CONFIGURED = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    SUPABASE_URL = 'https://example.supabase.co'
    SUPABASE_ANON_KEY = 'anon-key'
    SUPABASE_SERVICE_ROLE_KEY = 'service-key'
    OPENAI_API_KEY = None
    USE_OPENAI = False
    CRON_SECRET = 'cron-secret'
    REFRESH_DELAY = 0
    SITE_URL = 'https://thegiddylist.com'
