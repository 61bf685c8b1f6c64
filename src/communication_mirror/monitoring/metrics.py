"""Custom Prometheus metrics for Communication Mirror.

These metrics are exposed at /metrics and should be scraped by Prometheus.
Alert rules should be configured for:
- generation_failures_total (model drifting away from the output shapes)
- retries_total with success="false" (exhausted generations reach users)
- batch_requests_total with status="failed"
"""

from prometheus_client import Counter, Gauge, Histogram

# === Generation Metrics ===

generation_failures_total = Counter(
    "generation_failures_total",
    "Total generation failures by analysis kind and error type",
    ["kind", "error_type"],
)
"""
Generation failures by analysis kind and error type.

Labels:
- kind: intent, tone, impact, alternatives
- error_type: empty_content, parse_error, truncated, or a schema failure tag
  (empty_string, too_few_items, invalid_choice, ...)

Alert thresholds:
- WARN: rate > 10% of generations
- CRITICAL: rate > 30% of generations
"""

generation_attempts_total = Counter(
    "generation_attempts_total",
    "Total single generation attempts by analysis kind and outcome",
    ["kind", "outcome"],
)
"""
Every constrained generation attempt.

Labels:
- kind: analysis kind
- outcome: success, parse_error, validation_error, truncation_error
"""

# === Retry Metrics ===

retries_total = Counter(
    "retries_total",
    "Total corrective retries by analysis kind and outcome",
    ["kind", "success"],
)
"""
Corrective retries (attempt 2) by kind and whether the retry succeeded.

Alert thresholds:
- WARN: retry rate > 15% of generations
- CRITICAL: success="false" rate > 5% of generations
"""

# === Batch Metrics ===

batch_requests_total = Counter(
    "batch_requests_total",
    "Total batched four-way analyses by outcome",
    ["status"],
)
"""
Batched analyses.

Labels:
- status: success, failed
"""

# === Post-processing Metrics ===

postprocessing_corrections_total = Counter(
    "postprocessing_corrections_total",
    "Total semantic repairs applied to schema-valid output",
    ["processor", "correction"],
)
"""
Semantic repairs applied after validation.

Labels:
- processor: impact, tone, alternatives
- correction: category_recomputed, consistency_bump, cooperation_floor,
  neutral_dropped, label_cleaned, sentiment_overridden, alternative_dropped

A sudden rise in any correction usually means a prompt or model regression.
"""

# === LLM Performance Metrics ===

llm_latency_seconds = Histogram(
    "llm_latency_seconds",
    "LLM decode latency in seconds",
    ["model", "success"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
)
"""
Decode latency per call.

Labels:
- model: Model name (e.g., qwen2.5:7b)
- success: true, false
"""

llm_tokens_total = Counter(
    "llm_tokens_total",
    "Total tokens processed by the model",
    ["model", "token_type"],
)
"""
Token usage.

Labels:
- model: Model name
- token_type: prompt, completion
"""

# === Session Metrics ===

active_sessions = Gauge(
    "active_sessions",
    "Number of conversation sessions currently held in memory",
)

sessions_evicted_total = Counter(
    "sessions_evicted_total",
    "Total sessions removed by the idle-expiry sweep",
)
