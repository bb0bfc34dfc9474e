"""
Infrastructure Layer

Adapters for SQLite persistence, yt-dlp resolution and the discord.py
voice client and slash-command front-end.
"""
