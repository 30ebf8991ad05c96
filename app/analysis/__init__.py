"""AI answer analysis: brand/competitor mention extraction with keyword sentiment.

Input:  raw answer text + brand name + competitor names
Output: list[MentionDraft] ready to be persisted as Mention rows
"""
