"""
Classifier integration for modfilter.

- **llm_engine.py**: ModerationClient - blocklist pre-filter, one chat completion
  request against an OpenAI-compatible endpoint, and response interpretation.
"""
