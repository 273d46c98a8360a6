from newsprism.extensions import db
from newsprism.utils.dates import utcnow, isoformat_or_none


class JobStatus:
    PENDING = 'pending'
    PROCESSING = 'processing'
    COMPLETED = 'completed'
    FAILED = 'failed'
    NOT_RELEVANT = 'not-relevant'

    ALL = (PENDING, PROCESSING, COMPLETED, FAILED, NOT_RELEVANT)
    TERMINAL = (COMPLETED, FAILED, NOT_RELEVANT)


class ScrapeJob(db.Model):
    __tablename__ = 'scrape_jobs'

    id = db.Column(db.Integer, primary_key=True)
    url = db.Column(db.String(2048), nullable=False, unique=True)
    website_id = db.Column(db.Integer, db.ForeignKey('websites.id'), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default=JobStatus.PENDING)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    last_processed_at = db.Column(db.DateTime(timezone=True))
    error_log = db.Column(db.Text)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    website = db.relationship('Website', back_populates='jobs')

    __table_args__ = (
        db.Index('ix_scrape_jobs_status_created', 'status', 'created_at'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'url': self.url,
            'website_id': self.website_id,
            'status': self.status,
            'attempts': self.attempts,
            'last_processed_at': isoformat_or_none(self.last_processed_at),
            'error_log': self.error_log,
            'created_at': isoformat_or_none(self.created_at),
        }
