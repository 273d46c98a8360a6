"""Initial pipeline schema

Revision ID: 3b1c9e0d4a21
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3b1c9e0d4a21'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'websites',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=256), nullable=False),
        sa.Column('url', sa.String(length=2048), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=64), nullable=False),
        sa.Column('country', sa.String(length=64), nullable=True),
        sa.Column('neutrality_rating', sa.Float(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('scraping_enabled', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('url'),
    )
    op.create_index('ix_websites_active_enabled', 'websites', ['is_active', 'scraping_enabled'], unique=False)

    op.create_table(
        'rss_feeds',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=256), nullable=False),
        sa.Column('url', sa.String(length=2048), nullable=False),
        sa.Column('category', sa.String(length=64), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('url'),
    )

    op.create_table(
        'scrape_jobs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('url', sa.String(length=2048), nullable=False),
        sa.Column('website_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False),
        sa.Column('last_processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('error_log', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['website_id'], ['websites.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('url'),
    )
    op.create_index('ix_scrape_jobs_website_id', 'scrape_jobs', ['website_id'], unique=False)
    op.create_index('ix_scrape_jobs_status_created', 'scrape_jobs', ['status', 'created_at'], unique=False)

    op.create_table(
        'articles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('link', sa.String(length=2048), nullable=False),
        sa.Column('title', sa.String(length=1024), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('source', sa.String(length=256), nullable=False),
        sa.Column('category', sa.String(length=64), nullable=True),
        sa.Column('author', sa.String(length=256), nullable=True),
        sa.Column('pub_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('image_url', sa.String(length=2048), nullable=True),
        sa.Column('website_id', sa.Integer(), nullable=True),
        sa.Column('word_count', sa.Integer(), nullable=True),
        sa.Column('embedding_generated', sa.Boolean(), nullable=False),
        sa.Column('embedding_generated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['website_id'], ['websites.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('link'),
    )
    op.create_index('ix_articles_website_id', 'articles', ['website_id'], unique=False)
    op.create_index('ix_articles_pub_date', 'articles', ['pub_date'], unique=False)
    op.create_index('ix_articles_embedding_generated', 'articles', ['embedding_generated'], unique=False)

    op.create_table(
        'article_chunks',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('article_id', sa.Integer(), nullable=False),
        sa.Column('chunk_index', sa.Integer(), nullable=False),
        sa.Column('chunk_text', sa.Text(), nullable=False),
        sa.Column('word_count', sa.Integer(), nullable=False),
        sa.Column('embedding_blob', sa.LargeBinary(), nullable=True),
        sa.Column('embedding_model', sa.String(length=64), nullable=True),
        sa.Column('embedding_dim', sa.Integer(), nullable=True),
        sa.Column('embedding_generated', sa.Boolean(), nullable=False),
        sa.Column('embedding_generated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['article_id'], ['articles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('article_id', 'chunk_index', name='uq_article_chunk_index'),
    )

    op.create_table(
        'comparative_analyses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('topic_id', sa.String(length=64), nullable=False),
        sa.Column('topic_summary', sa.String(length=512), nullable=False),
        sa.Column('aggregate_summary', sa.Text(), nullable=False),
        sa.Column('source_perspectives', sa.JSON(), nullable=False),
        sa.Column('article_ids', sa.JSON(), nullable=False),
        sa.Column('total_articles', sa.Integer(), nullable=False),
        sa.Column('similarity_threshold', sa.Float(), nullable=False),
        sa.Column('is_fallback', sa.Boolean(), nullable=False),
        sa.Column('analysis_timestamp', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_comparative_analyses_total_articles', 'comparative_analyses', ['total_articles'], unique=False)
    op.create_index('ix_comparative_analyses_created_at', 'comparative_analyses', ['created_at'], unique=False)

    op.create_table(
        'llm_call_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('call_purpose', sa.String(length=128), nullable=False),
        sa.Column('model', sa.String(length=64), nullable=False),
        sa.Column('prompt_tokens', sa.Integer(), nullable=False),
        sa.Column('completion_tokens', sa.Integer(), nullable=False),
        sa.Column('total_tokens', sa.Integer(), nullable=False),
        sa.Column('cost_usd', sa.Float(), nullable=False),
        sa.Column('latency_ms', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_llm_call_logs_created_at', 'llm_call_logs', ['created_at'], unique=False)


def downgrade():
    op.drop_index('ix_llm_call_logs_created_at', table_name='llm_call_logs')
    op.drop_table('llm_call_logs')
    op.drop_index('ix_comparative_analyses_created_at', table_name='comparative_analyses')
    op.drop_index('ix_comparative_analyses_total_articles', table_name='comparative_analyses')
    op.drop_table('comparative_analyses')
    op.drop_table('article_chunks')
    op.drop_index('ix_articles_embedding_generated', table_name='articles')
    op.drop_index('ix_articles_pub_date', table_name='articles')
    op.drop_index('ix_articles_website_id', table_name='articles')
    op.drop_table('articles')
    op.drop_index('ix_scrape_jobs_status_created', table_name='scrape_jobs')
    op.drop_index('ix_scrape_jobs_website_id', table_name='scrape_jobs')
    op.drop_table('scrape_jobs')
    op.drop_table('rss_feeds')
    op.drop_index('ix_websites_active_enabled', table_name='websites')
    op.drop_table('websites')
