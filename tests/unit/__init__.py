"""
Unit tests for Communication Mirror.

Test individual components in isolation:
- Output shapes, schema validation and truncation detection
- Constrained generator and Ollama runtime (httpx.MockTransport)
- Prompt and corrective retry prompt builders
- Retry engine (bounded attempts, corrective prompts)
- Post-processors (impact, tone, alternatives)
- Analysis service (single kind and batched)
- Session store and context formatting
"""
