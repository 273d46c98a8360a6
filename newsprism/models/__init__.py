from newsprism.models.website import Website
from newsprism.models.scrape_job import ScrapeJob, JobStatus
from newsprism.models.article import Article
from newsprism.models.chunk import ArticleChunk
from newsprism.models.analysis import ComparativeAnalysis
from newsprism.models.rss_feed import RssFeed
from newsprism.models.llm_call import LLMCallLog

__all__ = [
    'Website', 'ScrapeJob', 'JobStatus',
    'Article', 'ArticleChunk',
    'ComparativeAnalysis',
    'RssFeed', 'LLMCallLog',
]
