import logging

import numpy as np
import openai
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from newsprism.errors import ProviderError, require_setting
from newsprism.extensions import db
from newsprism.models.chunk import ArticleChunk
from newsprism.services.chunker import chunk_text
from newsprism.utils.dates import utcnow
from newsprism.utils.serialization import embedding_to_bytes
from newsprism.utils.throttle import pause

logger = logging.getLogger(__name__)

MAX_INPUT_CHARS = 8000


def build_embedding_input(article):
    """Source, title, description and body joined into one text.

    The source name is included so otherwise identical wire copy from two
    outlets does not embed identically.
    """
    parts = [
        f"Source: {article.source}",
        f"Title: {article.title}",
        f"Description: {article.description}" if article.description else '',
        article.content or '',
    ]
    return '\n\n'.join(p for p in parts if p)


class EmbeddingService:
    def __init__(self, app_config=None):
        config = app_config or current_app.config
        self.api_key = require_setting(config, 'OPENAI_API_KEY', 'embeddings')
        self.model = config.get('EMBEDDING_MODEL', 'text-embedding-3-small')
        self.dim = config.get('EMBEDDING_DIM', 1536)
        self.delay = config.get('EMBEDDING_CALL_DELAY_SECONDS', 0.1)
        self.chunk_size = config.get('CHUNK_SIZE_WORDS', 150)
        self.overlap_ratio = config.get('CHUNK_OVERLAP_RATIO', 0.2)
        self.timeout = config.get('PROVIDER_TIMEOUT_SECONDS', 60)
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = openai.OpenAI(api_key=self.api_key, timeout=self.timeout)
        return self._client

    def embed_text(self, text):
        """Embed one text. Returns a float32 numpy vector of length self.dim."""
        if not text or not text.strip():
            raise ProviderError('openai', 'Refusing to embed empty text')
        try:
            response = self.client.embeddings.create(
                model=self.model,
                input=text[:MAX_INPUT_CHARS],
                dimensions=self.dim,
            )
            vec = np.array(response.data[0].embedding, dtype=np.float32)
        except Exception as e:
            raise ProviderError('openai', f"Embedding request failed: {e}") from e

        if vec.shape[0] != self.dim:
            raise ProviderError('openai', f"Expected {self.dim}-dim embedding, got {vec.shape[0]}")
        return vec

    def embed_article(self, article):
        """
        Replace all chunks of an article with freshly embedded ones.
        Returns {'article_id', 'chunks_total', 'chunks_embedded'}.
        """
        chunks = chunk_text(
            build_embedding_input(article),
            chunk_size=self.chunk_size,
            overlap_ratio=self.overlap_ratio,
        )
        logger.info(f"[Embed] Article {article.id}: {len(chunks)} chunks")

        ArticleChunk.query.filter_by(article_id=article.id).delete(synchronize_session=False)
        db.session.commit()

        embedded = 0
        for chunk in chunks:
            try:
                vec = self.embed_text(chunk.text)
                db.session.add(ArticleChunk(
                    article_id=article.id,
                    chunk_index=embedded,
                    chunk_text=chunk.text,
                    word_count=chunk.word_count,
                    embedding_blob=embedding_to_bytes(vec),
                    embedding_model=self.model,
                    embedding_dim=self.dim,
                    embedding_generated=True,
                    embedding_generated_at=utcnow(),
                ))
                db.session.commit()
                embedded += 1
            except (ProviderError, SQLAlchemyError) as e:
                db.session.rollback()
                logger.error(f"[Embed] Article {article.id}, chunk {chunk.index} failed: {e}")
            pause(self.delay)

        if embedded:
            article.embedding_generated = True
            article.embedding_generated_at = utcnow()
        else:
            article.embedding_generated = False
            article.embedding_generated_at = None
        db.session.commit()

        return {
            'article_id': article.id,
            'chunks_total': len(chunks),
            'chunks_embedded': embedded,
        }
