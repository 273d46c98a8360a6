import logging
import time
from datetime import datetime, timezone

import openai
from flask import current_app

from newsprism.errors import BudgetExhaustedError, ProviderError, require_setting
from newsprism.extensions import db
from newsprism.models.llm_call import LLMCallLog

logger = logging.getLogger(__name__)

# Pricing per 1M tokens (input, output)
MODEL_PRICING = {
    'gpt-4o-mini': {'input': 0.15, 'output': 0.60},
    'gpt-4o': {'input': 2.50, 'output': 10.00},
    'gpt-4.1-mini': {'input': 0.40, 'output': 1.60},
    'gpt-4.1-nano': {'input': 0.10, 'output': 0.40},
}
DEFAULT_PRICING = {'input': 2.0, 'output': 10.0}


class LLMGateway:
    """Chat-completion calls with a daily token budget and a per-call ledger."""

    def __init__(self, app_config=None):
        config = app_config or current_app.config
        self.api_key = require_setting(config, 'OPENAI_API_KEY', 'comparative analysis')
        self.model = config.get('LLM_MODEL', 'gpt-4o-mini')
        self.temperature = config.get('LLM_TEMPERATURE', 0.3)
        self.max_tokens = config.get('LLM_MAX_TOKENS', 2000)
        self.daily_budget_tokens = config.get('LLM_DAILY_TOKEN_BUDGET', 500_000)
        self.timeout = config.get('PROVIDER_TIMEOUT_SECONDS', 60)

    def call(self, messages, purpose, max_tokens=None):
        """
        Make one chat completion.
        Returns: {content, prompt_tokens, completion_tokens, total_tokens, cost_usd, model}
        Raises BudgetExhaustedError before calling when today's budget is spent,
        ProviderError when the API call fails.
        """
        used = self._tokens_used_today()
        if used >= self.daily_budget_tokens:
            raise BudgetExhaustedError(used, self.daily_budget_tokens)

        client = openai.OpenAI(api_key=self.api_key, timeout=self.timeout)
        start_ms = int(time.time() * 1000)
        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=max_tokens or self.max_tokens,
            )
        except Exception as e:
            logger.error(f"OpenAI call failed ({purpose}): {e}")
            raise ProviderError('openai', str(e)) from e
        latency_ms = int(time.time() * 1000) - start_ms

        usage = getattr(response, 'usage', None)
        if usage is None or not getattr(response, 'choices', None):
            raise ProviderError('openai', f"Incomplete completion response ({purpose})")
        cost = self._compute_cost(usage.prompt_tokens, usage.completion_tokens)
        self._log_call(purpose, usage, cost, latency_ms)

        return {
            'content': response.choices[0].message.content or '',
            'prompt_tokens': usage.prompt_tokens,
            'completion_tokens': usage.completion_tokens,
            'total_tokens': usage.total_tokens,
            'cost_usd': cost,
            'model': self.model,
        }

    def _compute_cost(self, prompt_tokens, completion_tokens):
        pricing = MODEL_PRICING.get(self.model, DEFAULT_PRICING)
        input_cost = (prompt_tokens / 1_000_000) * pricing['input']
        output_cost = (completion_tokens / 1_000_000) * pricing['output']
        return round(input_cost + output_cost, 6)

    def _tokens_used_today(self):
        now = datetime.now(timezone.utc)
        today_start = datetime(now.year, now.month, now.day, tzinfo=timezone.utc)
        used = db.session.query(
            db.func.coalesce(db.func.sum(LLMCallLog.total_tokens), 0)
        ).filter(LLMCallLog.created_at >= today_start).scalar()
        return int(used or 0)

    def _log_call(self, purpose, usage, cost, latency_ms):
        log = LLMCallLog(
            call_purpose=purpose,
            model=self.model,
            prompt_tokens=usage.prompt_tokens,
            completion_tokens=usage.completion_tokens,
            total_tokens=usage.total_tokens,
            cost_usd=cost,
            latency_ms=latency_ms,
        )
        db.session.add(log)
        db.session.commit()
        logger.info(
            f"LLM call: {purpose} | {self.model} | "
            f"{usage.total_tokens} tokens | ${cost:.4f} | {latency_ms}ms"
        )
