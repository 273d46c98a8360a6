from newsprism.extensions import db
from sqlalchemy import func


class Website(db.Model):
    """A news outlet the discovery stage maps. Managed outside the pipeline."""
    __tablename__ = 'websites'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(256), nullable=False)
    url = db.Column(db.String(2048), nullable=False, unique=True)
    description = db.Column(db.Text)
    category = db.Column(db.String(64), nullable=False, default='General')
    country = db.Column(db.String(64))
    neutrality_rating = db.Column(db.Float)
    is_active = db.Column(db.Boolean, default=True)
    scraping_enabled = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now())

    jobs = db.relationship('ScrapeJob', back_populates='website', lazy='dynamic')

    __table_args__ = (
        db.Index('ix_websites_active_enabled', 'is_active', 'scraping_enabled'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'url': self.url,
            'description': self.description,
            'category': self.category,
            'country': self.country,
            'neutrality_rating': self.neutrality_rating,
            'is_active': self.is_active,
            'scraping_enabled': self.scraping_enabled,
        }
