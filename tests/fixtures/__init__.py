"""
Test fixtures for Communication Mirror.

Valid model output per analysis kind:
- intent_response.json
- tone_response.json
- impact_response.json (categories consistent with values)
- alternatives_response.json (three alternatives)
"""
