"""discord.py cogs making up the chat transport."""
