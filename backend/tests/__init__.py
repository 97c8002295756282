"""
Pytest suite for the Tip Relayer backend.

Test categories:
- Unit tests: PDA derivation, validators, loaders and services with fake chain objects
- API tests: full FastAPI app over httpx ASGITransport with a substituted relayer context
"""
