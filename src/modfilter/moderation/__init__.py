"""
Moderation building blocks used by the client.

- **term_matcher.py**: word-boundary blocklist matching.
- **blocked_terms.py**: bundled baseline term list.
- **prompt_builder.py**: classifier prompt templates.
- **moderation_parsing.py**: fence stripping and JSON decoding of classifier answers.
- **malicious_message.py**: storage hand-off for rejected messages.
"""
