"""
content_guard – repetitive-content checker for short videos.

Entry point:  content_guard.main:app  (FastAPI ASGI application)

Sub-packages:
    ai          Verdict model and Gemini judgment client
    db          Persisted, capped history of accepted videos
    forensic    Verdict evidence rendering
    monitor     Upload validation and frame sampling
    review      Staged uploads and the analysis workflow
"""
