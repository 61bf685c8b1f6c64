"""
Integration tests for Communication Mirror.

Test components together or against real external services:
- API endpoints (FastAPI TestClient over a scripted model runtime)
- Ollama runtime (real calls, marked with @pytest.mark.ollama)
"""
