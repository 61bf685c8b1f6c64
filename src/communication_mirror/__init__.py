"""
Communication Mirror: structured message analysis on top of a local LLM.

Analyses one short message along four axes:
- Intent (primary, secondary, implicit)
- Tone (summary, labelled emotions, details)
- Predicted recipient impact (four scored metrics)
- Alternative phrasings

Architecture: FastAPI surface + Ollama constrained decoding + schema
validation with corrective retry + semantic post-processing + an in-memory
conversation store that feeds prior turns back into the prompts.
"""

__version__ = "0.1.0"
