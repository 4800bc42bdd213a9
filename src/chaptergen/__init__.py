"""
Chapter Generator - Topic chapters for long-form speech transcripts.

A small pipeline for:
- Fetching time-aligned transcripts (caption API or local JSON/SRT files)
- Splitting transcripts into topic groups on pauses and discourse cues
- Reducing groups to a duration-based chapter count
- Asking an LLM to title the chapters
- Tracking each asynchronous job from submission to done/error
"""

__version__ = "0.1.0"
