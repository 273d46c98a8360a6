import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-change-me')
    ADMIN_API_KEY = os.getenv('ADMIN_API_KEY')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'postgresql://localhost/newsprism')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {'pool_pre_ping': True, 'pool_size': 5}

    # LLM (comparative analysis)
    OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
    LLM_MODEL = os.getenv('LLM_MODEL', 'gpt-4o-mini')
    LLM_TEMPERATURE = float(os.getenv('LLM_TEMPERATURE', '0.3'))
    LLM_MAX_TOKENS = int(os.getenv('LLM_MAX_TOKENS', '2000'))
    LLM_DAILY_TOKEN_BUDGET = int(os.getenv('LLM_DAILY_TOKEN_BUDGET', '500000'))

    # Embeddings
    EMBEDDING_MODEL = os.getenv('EMBEDDING_MODEL', 'text-embedding-3-small')
    EMBEDDING_DIM = int(os.getenv('EMBEDDING_DIM', '1536'))
    EMBEDDING_CALL_DELAY_SECONDS = float(os.getenv('EMBEDDING_CALL_DELAY_SECONDS', '0.1'))
    EMBEDDING_BATCH_LIMIT = int(os.getenv('EMBEDDING_BATCH_LIMIT', '10'))
    CHUNK_SIZE_WORDS = int(os.getenv('CHUNK_SIZE_WORDS', '150'))
    CHUNK_OVERLAP_RATIO = float(os.getenv('CHUNK_OVERLAP_RATIO', '0.2'))

    # Scraping
    SCRAPE_PROVIDER = os.getenv('SCRAPE_PROVIDER', 'firecrawl')
    FIRECRAWL_API_KEY = os.getenv('FIRECRAWL_API_KEY')
    FIRECRAWL_BASE_URL = os.getenv('FIRECRAWL_BASE_URL', 'https://api.firecrawl.dev/v1')
    PROVIDER_TIMEOUT_SECONDS = int(os.getenv('PROVIDER_TIMEOUT_SECONDS', '60'))
    SCRAPE_BATCH_SIZE = int(os.getenv('SCRAPE_BATCH_SIZE', '3'))
    SCRAPE_MAX_ATTEMPTS = int(os.getenv('SCRAPE_MAX_ATTEMPTS', '3'))
    SCRAPE_STALE_MINUTES = int(os.getenv('SCRAPE_STALE_MINUTES', '30'))
    SCRAPE_CALL_DELAY_SECONDS = float(os.getenv('SCRAPE_CALL_DELAY_SECONDS', '0.5'))

    # Discovery
    MAP_MAX_DEPTH = int(os.getenv('MAP_MAX_DEPTH', '1'))
    MAP_LIMIT = int(os.getenv('MAP_LIMIT', '2000'))
    DISCOVERY_LOOKUP_BATCH_SIZE = int(os.getenv('DISCOVERY_LOOKUP_BATCH_SIZE', '100'))
    RELEVANCE_EXEMPT_CATEGORY = os.getenv('RELEVANCE_EXEMPT_CATEGORY', 'Iran-Specific')

    # RSS
    RSS_ITEMS_PER_FEED = int(os.getenv('RSS_ITEMS_PER_FEED', '5'))

    # Comparative analysis
    ANALYSIS_HOURS_BACK = int(os.getenv('ANALYSIS_HOURS_BACK', '12'))
    SIMILARITY_THRESHOLD = float(os.getenv('SIMILARITY_THRESHOLD', '0.5'))
    CLUSTERING_STRATEGY = os.getenv('CLUSTERING_STRATEGY', 'greedy')
    ANALYSIS_CONTENT_CHARS = int(os.getenv('ANALYSIS_CONTENT_CHARS', '2000'))

    # Scheduler
    SCHEDULER_ENABLED = os.getenv('SCHEDULER_ENABLED', 'true').lower() == 'true'
    SCHEDULER_API_ENABLED = False

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


class TestConfig(Config):
    TESTING = True
    ADMIN_API_KEY = 'test-admin-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}  # SQLite doesn't support pool_size
    SCHEDULER_ENABLED = False
    OPENAI_API_KEY = 'test-key'
    FIRECRAWL_API_KEY = 'test-firecrawl-key'
    LLM_DAILY_TOKEN_BUDGET = 100000
    EMBEDDING_DIM = 8
    EMBEDDING_CALL_DELAY_SECONDS = 0
    SCRAPE_CALL_DELAY_SECONDS = 0
