from newsprism.extensions import db
from newsprism.utils.dates import utcnow, isoformat_or_none


class LLMCallLog(db.Model):
    __tablename__ = 'llm_call_logs'

    id = db.Column(db.Integer, primary_key=True)
    call_purpose = db.Column(db.String(128), nullable=False)
    model = db.Column(db.String(64), nullable=False)
    prompt_tokens = db.Column(db.Integer, nullable=False, default=0)
    completion_tokens = db.Column(db.Integer, nullable=False, default=0)
    total_tokens = db.Column(db.Integer, nullable=False, default=0)
    cost_usd = db.Column(db.Float, nullable=False, default=0.0)
    latency_ms = db.Column(db.Integer)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'call_purpose': self.call_purpose,
            'model': self.model,
            'prompt_tokens': self.prompt_tokens,
            'completion_tokens': self.completion_tokens,
            'total_tokens': self.total_tokens,
            'cost_usd': self.cost_usd,
            'latency_ms': self.latency_ms,
            'created_at': isoformat_or_none(self.created_at),
        }
